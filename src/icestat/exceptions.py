"""Exceptions raised by icestat."""

from typing import List


class IcestatError(Exception):
    """Base class for all icestat errors."""


class DecodeError(IcestatError, ValueError):
    """A fetched payload is malformed or lacks required fields."""


class PortalError(IcestatError):
    """The on-board portal could not be reached or answered with an error."""


class StopNotFoundError(IcestatError, ValueError):
    """No stop of the trip matches the requested destination."""

    def __init__(self, query: str, station_names: List[str]):
        self.query = query
        self.station_names = list(station_names)
        super().__init__(
            f"stop {query!r} not found. Valid stops are: {', '.join(self.station_names)}"
        )


class TripCompleteError(IcestatError):
    """The train has arrived at its final stop."""

    def __init__(self, final_stop):
        self.final_stop = final_stop
        super().__init__(f"train arrived in {final_stop.station}")


class DestinationPassedError(IcestatError):
    """The requested destination lies behind the train."""

    def __init__(self, stop):
        self.stop = stop
        super().__init__(f"train has passed {stop}")
