"""icestat - Live trip statistics from the on-board portal of ICE trains."""

__version__ = "0.1.0"

from .models import Station, Stop, Trip, Status, Position, Link, Connectivity
from .speed import SpeedDistribution
from .portal_client import PortalClient
from .tracker import TripTracker

__all__ = [
    "TripTracker",
    "PortalClient",
    "SpeedDistribution",
    "Station",
    "Stop",
    "Trip",
    "Status",
    "Position",
    "Link",
    "Connectivity",
]
