"""Main trip tracker: one poll of the portal per tick."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from .exceptions import (
    DestinationPassedError,
    IcestatError,
    StopNotFoundError,
    TripCompleteError,
)
from .models import Connectivity, Stop, Trip
from .portal_client import PortalClient
from .speed import SpeedDistribution

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TripSummary:
    """Distances, ETAs and delays towards the destination and the next stop."""
    train: str  # e.g. "ICE521"
    destination: Stop
    distance: float  # km
    eta: Optional[timedelta]
    delay: Optional[timedelta]
    # Only set when the next stop is not the destination.
    next_stop: Optional[Stop] = None
    next_distance: Optional[float] = None
    next_eta: Optional[timedelta] = None
    next_delay: Optional[timedelta] = None


@dataclass(frozen=True)
class SpeedSummary:
    current: float  # km/h
    average: float
    max: float


@dataclass(frozen=True)
class ConnectivitySummary:
    online: bool
    rssi: List[Optional[float]]  # None for links that are down
    links_up: int
    links_total: int


@dataclass(frozen=True)
class TickResult:
    trip: TripSummary
    speed: SpeedSummary
    connectivity: Optional[ConnectivitySummary] = None


def select_destination(trip: Trip, name: Optional[str] = None) -> Stop:
    """
    Return the stop to anticipate: the first stop matching name, or the final stop.

    Raises:
        StopNotFoundError: If no station name contains name.
        DestinationPassedError: If the train already left the destination.
    """
    if name:
        stop = trip.find_stop(name)
        if stop is None:
            raise StopNotFoundError(name, trip.station_names())
    else:
        stop = trip.final_stop

    if stop.passed:
        raise DestinationPassedError(stop)
    return stop


def summarize_trip(trip: Trip, destination: Optional[str] = None, now: Optional[datetime] = None) -> TripSummary:
    """
    Compute the values shown for a trip.

    Raises:
        TripCompleteError: If the train has arrived at its final stop.
        StopNotFoundError: If destination does not match any stop.
        DestinationPassedError: If the destination lies behind the train.
    """
    next_stop = trip.next_stop
    if next_stop is None:
        raise TripCompleteError(trip.final_stop)

    dest = select_destination(trip, destination)
    if now is None:
        now = datetime.now(timezone.utc)

    summary = TripSummary(
        train=f"{trip.train_type}{trip.train_id}",
        destination=dest,
        distance=trip.distance_to(dest),
        eta=dest.eta(now),
        delay=dest.delay(),
    )
    if dest is next_stop:
        return summary

    return TripSummary(
        train=summary.train,
        destination=dest,
        distance=summary.distance,
        eta=summary.eta,
        delay=summary.delay,
        next_stop=next_stop,
        next_distance=trip.distance_to(next_stop),
        next_eta=next_stop.eta(now),
        next_delay=next_stop.delay(),
    )


def summarize_connectivity(connectivity: Connectivity) -> ConnectivitySummary:
    return ConnectivitySummary(
        online=connectivity.online,
        rssi=[link.rssi if link.is_up else None for link in connectivity.links],
        links_up=connectivity.links_up,
        links_total=len(connectivity.links),
    )


class TripTracker:
    """
    Polls the portal and derives what to display for the current trip.

    The tracker owns no history except the speed distribution it was given,
    which it updates once per successful tick.
    """

    def __init__(self, client: PortalClient, speeds: SpeedDistribution, destination: Optional[str] = None):
        """
        Initialize the tracker.

        Args:
            client: Client used to fetch trip, status and connectivity.
            speeds: Distribution receiving one speed sample per tick.
            destination: Optional station name (or part of it) to anticipate
                         instead of the final stop.
        """
        self.client = client
        self.speeds = speeds
        self.destination = destination

    def update(self, now: Optional[datetime] = None) -> TickResult:
        """
        Fetch fresh data and compute the summary for one tick.

        Raises:
            TripCompleteError: If the train has arrived at its final stop.
            IcestatError: If fetching or decoding trip or status failed, or
                          the destination cannot be used.
        """
        trip = self.client.trip_info()
        trip_summary = summarize_trip(trip, self.destination, now)

        status = self.client.status_info()
        self.speeds.add(status.speed)
        speed_summary = SpeedSummary(
            current=status.speed,
            average=self.speeds.average(),
            max=self.speeds.max(),
        )

        connectivity = None
        try:
            connectivity = summarize_connectivity(self.client.connectivity_info())
        except IcestatError as e:
            logger.warning(f"Failed to fetch connectivity: {e}")

        return TickResult(trip=trip_summary, speed=speed_summary, connectivity=connectivity)
