"""
Command-line entry point for the booking engine.

Reads a facility configuration and the slots already occupying it from
JSON files and prints the engine's answer as JSON.

Usage:
    python main.py preview --facility court.json --occupied slots.json \
        --start 2025-06-01T10:00:00+00:00 --end 2025-06-01T11:00:00+00:00
    python main.py availability --facility court.json --from 2025-06-01 --to 2025-06-07
"""

import argparse
import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from facility_booking.engine import calculate_availability, preview_booking
from facility_booking.errors import BookingEngineError
from facility_booking.schemas import (
    BookingRequest,
    DateRange,
    FacilityConfig,
    OccupiedSlot,
    TimeInterval,
)

logger = logging.getLogger(__name__)

_occupied_adapter = TypeAdapter(list[OccupiedSlot])


def _load_facility(path: Path) -> FacilityConfig:
    return FacilityConfig.model_validate_json(path.read_text(encoding="utf-8"))


def _load_occupied(path: Optional[Path]) -> list[OccupiedSlot]:
    if path is None:
        return []
    return _occupied_adapter.validate_json(path.read_text(encoding="utf-8"))


def _run_preview(args: argparse.Namespace) -> str:
    facility = _load_facility(args.facility)
    occupied = _load_occupied(args.occupied)
    request = BookingRequest(
        facility_id=facility.id,
        interval=TimeInterval(
            datetime.fromisoformat(args.start), datetime.fromisoformat(args.end)
        ),
        promo_code=args.promo,
    )
    now = datetime.fromisoformat(args.now) if args.now else None
    result = preview_booking(request, facility, occupied, now=now)
    return result.model_dump_json(indent=2)


def _run_availability(args: argparse.Namespace) -> str:
    facility = _load_facility(args.facility)
    occupied = _load_occupied(args.occupied)
    date_range = DateRange(
        date.fromisoformat(args.date_from), date.fromisoformat(args.date_to or args.date_from)
    )
    result = calculate_availability(facility, date_range, occupied)
    return result.model_dump_json(indent=2)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Preview bookings and compute availability for a facility."
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging output.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--facility",
        type=Path,
        required=True,
        help="Path to the facility configuration JSON file.",
    )
    common.add_argument(
        "--occupied",
        type=Path,
        default=None,
        help="Path to a JSON list of occupied slots (default: none).",
    )

    preview = subparsers.add_parser(
        "preview", parents=[common], help="Check bookability and price of an interval."
    )
    preview.add_argument("--start", required=True, help="ISO-8601 start with UTC offset.")
    preview.add_argument("--end", required=True, help="ISO-8601 end with UTC offset.")
    preview.add_argument("--promo", default=None, help="Optional promo code.")
    preview.add_argument(
        "--now", default=None, help="Evaluation time; enables the past-booking check."
    )
    preview.set_defaults(handler=_run_preview)

    availability = subparsers.add_parser(
        "availability", parents=[common], help="Priced slot grid over a date range."
    )
    availability.add_argument("--from", dest="date_from", required=True, help="First date.")
    availability.add_argument(
        "--to", dest="date_to", default=None, help="Last date, inclusive (default: --from)."
    )
    availability.set_defaults(handler=_run_availability)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    for path in (args.facility, args.occupied):
        if path is not None and not path.exists():
            logger.error("File not found: %s", path)
            return 1

    try:
        output = args.handler(args)
    except (ValidationError, BookingEngineError, ValueError) as exc:
        logger.error("Invalid input: %s", exc)
        return 2

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
