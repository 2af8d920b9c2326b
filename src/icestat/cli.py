"""Command line interface: prints a refreshed trip summary every interval."""

import argparse
import logging
import sys
import time
from typing import Callable, List, Optional

from .config import DEFAULT_INTERVAL, Settings, parse_interval
from .exceptions import IcestatError, TripCompleteError
from .formatter import format_tick
from .portal_client import PortalClient
from .speed import SpeedDistribution
from .tracker import TripTracker

logger = logging.getLogger(__name__)


def _interval(value: str) -> float:
    try:
        return parse_interval(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="icestat",
        description="Live trip statistics from the on-board portal of ICE trains.",
    )
    parser.add_argument(
        "--interval",
        type=_interval,
        default=DEFAULT_INTERVAL,
        help="Interval in which to report statistics, e.g. 10s or 1m (default: 10s).",
    )
    parser.add_argument(
        "--count",
        type=int,
        default=-1,
        help="Number of iterations; negative means forever (default: -1).",
    )
    parser.add_argument(
        "--once",
        action="store_const",
        const=1,
        dest="count",
        help="Report once and exit, same as --count 1.",
    )
    parser.add_argument(
        "--destination",
        default=None,
        help="Optional destination to anticipate; part of the station name is enough.",
    )
    parser.add_argument(
        "--timeout",
        type=_interval,
        default=None,
        help="Timeout for a single request, capped at the interval (default: the interval).",
    )
    parser.add_argument(
        "--verify-tls",
        action="store_true",
        help="Verify the portal's TLS certificate.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def run(
    tracker: TripTracker,
    settings: Settings,
    sink: Callable[[str], None] = print,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """
    Poll until count iterations are done or the trip is complete.

    A failed tick is logged and retried after one interval.

    Returns:
        Number of ticks that produced output.
    """
    count = settings.count
    printed = 0

    while count != 0:
        if count > 0:
            count -= 1

        try:
            result = tracker.update()
        except TripCompleteError as e:
            logger.info(str(e))
            break
        except IcestatError as e:
            logger.error(str(e))
            sleep(settings.interval)
            continue

        sink(format_tick(result))
        printed += 1

        if count != 0:
            sleep(settings.interval)

    return printed


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the icestat command."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    settings = Settings.from_env(
        interval=args.interval,
        count=args.count,
        destination=args.destination,
        verify_tls=args.verify_tls,
        timeout=args.timeout,
    )
    speeds = SpeedDistribution()

    with PortalClient(settings) as client:
        tracker = TripTracker(client, speeds, destination=settings.destination)
        try:
            run(tracker, settings)
        except KeyboardInterrupt:
            print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
