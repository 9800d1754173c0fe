"""Shared utilities used across the booking engine."""

import re
from datetime import datetime, time, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from facility_booking.config import settings
from facility_booking.errors import InvalidInputError

CENT = Decimal("0.01")

_REFERENCE_RE = re.compile(r"^([A-Z]+)-(\d{4})-(\d{6})$")


def round_money(value: Decimal) -> Decimal:
    """Round to 2 decimal places, half-up.

    Examples:
        >>> round_money(Decimal("2.675"))
        Decimal('2.68')
        >>> round_money(Decimal("10"))
        Decimal('10.00')
    """
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_time_of_day(value: str) -> time:
    """Parse an ``HH:MM`` string into a time.

    Examples:
        >>> parse_time_of_day("08:30")
        datetime.time(8, 30)
    """
    try:
        hours, minutes = value.strip().split(":")
        return time(int(hours), int(minutes))
    except (ValueError, AttributeError):
        raise ValueError(f"Invalid time of day: {value!r} (expected HH:MM)") from None


def to_utc(value: datetime) -> datetime:
    """Normalize an aware datetime to UTC. Naive datetimes are rejected."""
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"Datetime must be timezone-aware: {value.isoformat()}")
    return value.astimezone(timezone.utc)


def require_aware(value: datetime) -> datetime:
    """Normalize an engine time input to UTC, rejecting naive values as invalid input."""
    try:
        return to_utc(value)
    except ValueError as exc:
        raise InvalidInputError(str(exc)) from None


def generate_booking_reference(
    sequence_number: int, year: Optional[int] = None, prefix: Optional[str] = None
) -> str:
    """Build a human-readable reference like ``KH-2025-001234``."""
    if sequence_number < 1:
        raise ValueError(f"Sequence number must be >= 1, got {sequence_number}")
    current_year = year if year is not None else datetime.now(timezone.utc).year
    return f"{prefix or settings.booking.reference_prefix}-{current_year}-{sequence_number:06d}"


def parse_booking_reference(reference: str) -> Optional[tuple[str, int, int]]:
    """Split a reference into (prefix, year, sequence), or None if malformed."""
    match = _REFERENCE_RE.match(reference)
    if not match:
        return None
    return match.group(1), int(match.group(2)), int(match.group(3))


def is_valid_booking_reference(reference: str) -> bool:
    parsed = parse_booking_reference(reference)
    return parsed is not None and parsed[0] == settings.booking.reference_prefix
