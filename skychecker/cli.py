"""
SkyChecker Command Line

Usage:
    python -m skychecker tonight
    python -m skychecker tonight --lat 64.84 --lon -147.72 --date 2025-12-21
    python -m skychecker tonight --config ./skychecker.yaml --refresh
"""

import argparse
import asyncio
import sys
from datetime import date, datetime
from typing import List, Optional
from zoneinfo import ZoneInfo

from skychecker import __version__
from skychecker.config import SkyCheckerConfig, load_config
from skychecker.exceptions import ConfigurationError, InvalidCoordinatesError
from skychecker.logging_config import get_logger, setup_logging
from skychecker.models import CelestialObject, EventState, ObservationSession, format_clock_time
from skychecker.planner import NightPlanner
from services.location import manual_location, site_location

logger = get_logger(__name__)

__all__ = ["main", "build_parser", "format_report", "sort_for_display"]


def _iso_date(text: str) -> date:
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {text!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="skychecker",
        description="What can I see in the sky tonight?",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    tonight = sub.add_parser("tonight", help="Plan tonight's observing session")
    tonight.add_argument("--lat", help="Latitude in degrees, positive North (default: configured site)")
    tonight.add_argument("--lon", help="Longitude in degrees, positive East (default: configured site)")
    tonight.add_argument("--date", type=_iso_date, help="Local date YYYY-MM-DD (default: today)")
    tonight.add_argument("--config", help="Path to a YAML config file")
    tonight.add_argument("--refresh", action="store_true", help="Ignore any cached session")
    tonight.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the configured log level",
    )
    return parser


# =============================================================================
# Report
# =============================================================================


def sort_for_display(objects: List[CelestialObject]) -> List[CelestialObject]:
    """Visible objects first, then by rise time; objects without one last."""
    return sorted(
        objects,
        key=lambda obj: (
            not obj.is_visible,
            obj.rise_time is None,
            obj.rise_time.timestamp() if obj.rise_time else 0.0,
        ),
    )


def _event_cell(instant: Optional[datetime], state: EventState, tz) -> str:
    if instant is not None:
        return format_clock_time(instant, tz)
    if state in (EventState.ALREADY_UP, EventState.STILL_UP):
        return "up"
    return "--"


def _object_line(obj: CelestialObject, tz) -> str:
    status = obj.status.display_text if obj.status else "Unknown"
    if obj.is_stale:
        status += "*"
    peak = "--"
    if obj.transit_time is not None:
        peak = format_clock_time(obj.transit_time, tz)
        if obj.transit_altitude is not None:
            peak += f" {obj.transit_altitude:.0f}°"
    return (
        f"{obj.difficulty.indicator} {obj.display_name:<14} {status:<16} "
        f"rise {_event_cell(obj.rise_time, obj.rise_state, tz):<7} "
        f"peak {peak:<11} "
        f"set {_event_cell(obj.set_time, obj.set_state, tz)}"
    )


def format_report(session: ObservationSession, tz, error_message: Optional[str] = None) -> str:
    """Plain-text report of one session."""
    window = session.window
    lines = [
        f"SkyChecker - {session.date.isoformat()} at {session.location.display_string}",
        f"Window: {format_clock_time(window.start, tz)} -> {format_clock_time(window.end, tz)}"
        f" ({window.source.value.replace('_', ' ')})",
        f"Sky: {session.polar_condition.value.replace('_', ' ')}",
    ]
    if session.meteor_shower:
        lines.append(f"Meteors: {session.meteor_shower}")
    if session.weather_summary:
        lines.append(f"Weather: {session.weather_summary}")
    if session.forecast_hours:
        lines.append(f"Clear hours: {session.clear_hours} of {session.forecast_hours}")
    lines.append("")

    lines.extend(_object_line(obj, tz) for obj in sort_for_display(session.objects))

    lines.append("")
    lines.append(f"{session.visible_count} of {len(session.objects)} objects visible tonight")
    if any(obj.is_stale for obj in session.objects):
        lines.append("* previous data, latest fetch failed")
    if error_message:
        lines.append(error_message)
    return "\n".join(lines)


# =============================================================================
# Entry Point
# =============================================================================


async def _tonight(args: argparse.Namespace, config: SkyCheckerConfig) -> int:
    tz = ZoneInfo(config.site.timezone)
    if args.lat is None and args.lon is None:
        location = site_location(config.site)
    else:
        location = manual_location(args.lat, args.lon)
    day = args.date or datetime.now(tz).date()

    planner = NightPlanner.from_config(config)
    try:
        if not args.refresh:
            cached = planner.load_cached(day, location)
            if cached is not None:
                print(format_report(cached, tz))
                return 0
        result = await planner.plan(day, location)
    finally:
        await planner.close()

    print(format_report(result.session, tz, result.error_message))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if (args.lat is None) != (args.lon is None):
        parser.error("--lat and --lon must be given together")

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"skychecker: {e}", file=sys.stderr)
        return 1

    setup_logging(args.log_level or config.log_level, config.log_file)

    try:
        return asyncio.run(_tonight(args, config))
    except InvalidCoordinatesError as e:
        print(f"skychecker: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130
