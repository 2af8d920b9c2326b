"""Runtime settings for icestat."""

import os
import re
from dataclasses import dataclass
from typing import Optional

# Legacy URL, may be used by old systems: http://ice.portal/jetty/api/v1/tripInfo
TRIP_INFO_URL = "https://portal.imice.de/api1/rs/tripInfo"
STATUS_URL = "http://ice.portal/jetty/api/v1/status"
POSITION_URL = "http://www.ombord.info/api/jsonp/position/"
CONNECTIVITY_URL = "http://www.ombord.info/api/jsonp/connectivity/"

DEFAULT_INTERVAL = 10.0  # seconds

_INTERVAL_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$")
_UNIT_SECONDS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_interval(value: str) -> float:
    """
    Parse a duration such as "10s", "500ms", "2m" or "15" into seconds.

    Raises:
        ValueError: If value is not a positive duration.
    """
    match = _INTERVAL_RE.match(value)
    if not match:
        raise ValueError(f"invalid interval {value!r}")

    seconds = float(match.group(1)) * _UNIT_SECONDS[match.group(2) or "s"]
    if seconds <= 0:
        raise ValueError(f"interval must be positive, got {value!r}")
    return seconds


@dataclass(frozen=True)
class Settings:
    """Configuration for a polling session."""

    interval: float = DEFAULT_INTERVAL
    count: int = -1  # Negative polls forever, 0 not at all
    destination: Optional[str] = None  # None anticipates the final stop
    trip_url: str = TRIP_INFO_URL
    status_url: str = STATUS_URL
    position_url: str = POSITION_URL
    connectivity_url: str = CONNECTIVITY_URL
    verify_tls: bool = False
    timeout: Optional[float] = None

    @property
    def request_timeout(self) -> float:
        """Timeout for a single request; never longer than one interval."""
        if self.timeout is None:
            return self.interval
        return min(self.timeout, self.interval)

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        """Create settings, taking endpoint URLs and the request timeout from the environment if set."""
        values = {
            "trip_url": os.environ.get("ICESTAT_TRIP_URL", TRIP_INFO_URL),
            "status_url": os.environ.get("ICESTAT_STATUS_URL", STATUS_URL),
            "position_url": os.environ.get("ICESTAT_POSITION_URL", POSITION_URL),
            "connectivity_url": os.environ.get("ICESTAT_CONNECTIVITY_URL", CONNECTIVITY_URL),
        }
        timeout = os.environ.get("ICESTAT_TIMEOUT")
        if timeout:
            values["timeout"] = parse_interval(timeout)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
