"""Data models for the on-board portal of ICE trains."""

import enum
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from ipaddress import IPv4Address, IPv6Address
from typing import List, Optional, Tuple, Union

# Canonical "zero" timestamp for arrival/departure times the portal leaves out.
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def is_zero_time(value: datetime) -> bool:
    """Return True if value is the canonical zero timestamp."""
    return value == EPOCH


@dataclass(frozen=True)
class Station:
    """Represents a train station along the route."""
    eva_nr: str  # Station identifier, e.g. "8000261_00"
    name: str
    latitude: float
    longitude: float

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Stop:
    """A scheduled stop along the route."""
    station: Station
    platform: str
    distance_from_start: float  # km
    distance_from_last_stop: float  # km
    passed: bool
    scheduled_arrival: datetime = EPOCH
    actual_arrival: datetime = EPOCH
    scheduled_departure: datetime = EPOCH
    actual_departure: datetime = EPOCH

    def delay(self) -> Optional[timedelta]:
        """
        Return the delay at this stop; positive means late.

        For stops the train has already left this is the actual delay of the
        departure, for upcoming stops the estimated delay of the arrival.
        Returns None if one of the involved times is unknown.
        """
        if self.passed:
            actual, scheduled = self.actual_departure, self.scheduled_departure
        else:
            actual, scheduled = self.actual_arrival, self.scheduled_arrival

        if is_zero_time(actual) or is_zero_time(scheduled):
            return None
        return actual - scheduled

    def eta(self, now: Optional[datetime] = None) -> Optional[timedelta]:
        """
        Return the time until the train arrives at this stop.

        The portal's estimated arrival is used as-is, so a stale estimate
        yields a negative duration. Passed stops have an ETA of zero.
        """
        if self.passed:
            return timedelta(0)
        if is_zero_time(self.actual_arrival):
            return None
        if now is None:
            now = datetime.now(timezone.utc)
        return self.actual_arrival - now

    def __str__(self) -> str:
        delay = self.delay()
        minutes = "?" if delay is None else f"{delay.total_seconds() / 60:.0f}"
        return f"{self.station} P:{self.platform} ({minutes}m delay)"


@dataclass(frozen=True)
class Trip:
    """
    Information about the current trip.

    Mixes static information (list of stops, train number) with volatile live
    information (distance from last stop, delays). A new Trip is decoded on
    every poll; next and previous stop are stored as positions into stops.
    """
    train_id: str
    train_type: str
    date: date
    actual_position: int  # meters, as reported by the portal
    distance_from_last_stop: float  # km
    total_distance: float  # km
    stops: Tuple[Stop, ...]
    next_stop_index: Optional[int] = None
    previous_stop_index: Optional[int] = None
    final_station_name: str = ""
    final_station_eva_nr: str = ""

    @property
    def next_stop(self) -> Optional[Stop]:
        if self.next_stop_index is None:
            return None
        return self.stops[self.next_stop_index]

    @property
    def previous_stop(self) -> Optional[Stop]:
        if self.previous_stop_index is None:
            return None
        return self.stops[self.previous_stop_index]

    @property
    def final_stop(self) -> Stop:
        return self.stops[-1]

    @property
    def is_complete(self) -> bool:
        """True once there is no next stop, i.e. the train reached its destination."""
        return self.next_stop_index is None

    def distance_from_start(self) -> float:
        """Return the distance, in kilometers, from the beginning of the trip."""
        previous = self.previous_stop
        if previous is not None:
            return previous.distance_from_start + self.distance_from_last_stop
        return self.distance_from_last_stop

    def distance_to(self, stop: Stop) -> float:
        """
        Return the distance, in kilometers, between the current position and stop.

        Negative for stops the train has already passed.
        """
        return stop.distance_from_start - self.distance_from_start()

    def find_stop(self, name: str) -> Optional[Stop]:
        """
        Return the first stop whose station name contains name.

        Matching is a case-sensitive substring match, so "Basel" finds
        "Basel Bad Bf". Returns None if no station matches.
        """
        for stop in self.stops:
            if name in stop.station.name:
                return stop
        return None

    def station_names(self) -> List[str]:
        return [stop.station.name for stop in self.stops]

    def is_ordered(self) -> bool:
        """Check that stops are sorted by their distance from the start."""
        return all(
            a.distance_from_start <= b.distance_from_start
            for a, b in zip(self.stops, self.stops[1:])
        )


@dataclass(frozen=True)
class Status:
    """Live status of the train as reported by the portal."""
    connection: bool
    service_level: str
    speed: float  # km/h
    latitude: float
    longitude: float
    server_time: datetime = EPOCH


@dataclass(frozen=True)
class Position:
    """GPS position of the train."""
    version: str
    time: datetime
    latitude: float
    longitude: float
    altitude: float
    speed: float  # km/h
    satellites: int


class DeviceState(enum.Enum):
    """State of a physical uplink device."""
    DOWN = 0
    UP = 1


class LinkState(enum.Enum):
    """State of a logical uplink connection."""
    DISCONNECTED = 0
    AVAILABLE = 1


@dataclass(frozen=True)
class AccessPointName:
    """APN of a mobile network uplink."""
    name: str
    user: Optional[str] = None
    password: Optional[str] = None


@dataclass(frozen=True)
class UMTSInfo:
    net_status: Optional[str] = None
    lac: Optional[str] = None  # Location Area Code
    cell_id: Optional[str] = None


@dataclass(frozen=True)
class Link:
    """A single internet uplink of the train."""
    index: int
    device_type: str
    device_subtype: str
    device_state: DeviceState
    link_state: LinkState
    rssi: float  # dBm
    technology: str
    operator: Optional[str] = None
    apn: Optional[AccessPointName] = None
    umts: Optional[UMTSInfo] = None

    @property
    def is_up(self) -> bool:
        return self.device_state is DeviceState.UP and self.link_state is LinkState.AVAILABLE


@dataclass(frozen=True)
class Connectivity:
    """The train's upstream internet connections."""
    version: str
    online: bool
    bundle_id: str
    bundle_ip: Optional[Union[IPv4Address, IPv6Address]]
    links: Tuple[Link, ...]

    @property
    def links_up(self) -> int:
        return sum(1 for link in self.links if link.is_up)
