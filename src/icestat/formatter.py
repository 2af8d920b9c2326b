"""Terminal rendering of tracker results."""

import math
from datetime import timedelta
from typing import List, Optional

from .tracker import ConnectivitySummary, SpeedSummary, TickResult, TripSummary

RSSI_SYMBOLS = ["█", "▇", "▆", "▅", "▄", "▃", "▂", "▁"]

# TODO: these levels assume 3G/HSPA and should be adapted for 4G/LTE.
RSSI_LOWER_BOUNDS = [-67.5, -75.0, -82.5, -90.0, -95.0, -100.0, -105.0]


def format_duration(d: Optional[timedelta]) -> str:
    """Format a duration as h:mm, e.g. "1:05" or "-0:03"; "?" if unknown."""
    if d is None:
        return "?"

    total_minutes = round(d.total_seconds() / 60)
    sign = "-" if total_minutes < 0 else ""
    hours, minutes = divmod(abs(total_minutes), 60)
    return f"{sign}{hours}:{minutes:02d}"


def format_rssi(rssi: float) -> str:
    """Map a signal strength in dBm to a bar glyph."""
    for symbol, lower_bound in zip(RSSI_SYMBOLS, RSSI_LOWER_BOUNDS):
        if rssi >= lower_bound:
            return symbol
    return RSSI_SYMBOLS[-1]


def _speed(value: float) -> str:
    return "?" if math.isnan(value) else f"{value:.0f}"


def format_trip(summary: TripSummary) -> str:
    dest = summary.destination.station
    if summary.next_stop is None:
        return (
            f'{summary.train} to "{dest}": '
            f"distance={summary.distance:.0f} km, "
            f"eta={format_duration(summary.eta)}, "
            f"delay={format_duration(summary.delay)}"
        )

    return (
        f'{summary.train} to "{dest}" (via "{summary.next_stop.station}"): '
        f"distance={summary.distance:.0f}({summary.next_distance:.0f}) km, "
        f"eta={format_duration(summary.eta)}({format_duration(summary.next_eta)}), "
        f"delay={format_duration(summary.delay)}({format_duration(summary.next_delay)})"
    )


def format_speed(summary: SpeedSummary) -> str:
    return (
        f"speed={_speed(summary.current)}/{_speed(summary.average)}/{_speed(summary.max)}"
        " [km/h] (cur/avg/max)"
    )


def format_connectivity(summary: ConnectivitySummary) -> str:
    state = "online" if summary.online else "offline"
    bars = "".join(" " if rssi is None else format_rssi(rssi) for rssi in summary.rssi)
    return f"wifi={state} [{bars}] ({summary.links_up}/{summary.links_total})"


def format_tick(result: TickResult) -> str:
    """Render one tick as a single line."""
    parts: List[str] = [format_trip(result.trip), format_speed(result.speed)]
    if result.connectivity is not None:
        parts.append(format_connectivity(result.connectivity))
    return ", ".join(parts)
