"""
Interval arithmetic on half-open ``[start, end)`` UTC intervals.

Everything above this module (conflicts, availability, alternatives) goes
through these predicates so boundary handling is defined in one place:
intervals that only share an endpoint do not overlap.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Iterator

from facility_booking.schemas.facility_schema import FacilityConfig
from facility_booking.schemas.slot_schema import TimeInterval

_SECONDS_PER_HOUR = Decimal(3600)


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    """True iff the intervals share at least one instant."""
    return a.start < b.end and b.start < a.end


def contains(outer: TimeInterval, inner: TimeInterval) -> bool:
    """True iff ``inner`` lies entirely within ``outer`` (equal intervals included)."""
    return outer.start <= inner.start and inner.end <= outer.end


def duration_hours(interval: TimeInterval) -> Decimal:
    """Exact length in hours. Always positive for a constructed interval."""
    delta = interval.end - interval.start
    micros = Decimal(delta.days * 86400 + delta.seconds) * 1_000_000 + delta.microseconds
    return micros / 1_000_000 / _SECONDS_PER_HOUR


def local_date(facility: FacilityConfig, instant: datetime) -> date:
    """Calendar date of ``instant`` in the facility's timezone."""
    return instant.astimezone(facility.tz).date()


def operating_window(facility: FacilityConfig, day: date) -> TimeInterval:
    """Opening hours of ``day`` (facility-local) as a UTC interval."""
    tz = facility.tz
    opens = datetime.combine(day, facility.open_time, tzinfo=tz)
    closes = datetime.combine(day, facility.close_time, tzinfo=tz)
    return TimeInterval(opens, closes)


def iter_day_slots(facility: FacilityConfig, day: date) -> Iterator[TimeInterval]:
    """Contiguous slots of ``slot_duration_minutes`` from open to close.

    A trailing slot that would run past closing time is dropped.
    """
    window = operating_window(facility, day)
    step = timedelta(minutes=facility.slot_duration_minutes)
    slot_start = window.start
    while slot_start + step <= window.end:
        yield TimeInterval(slot_start, slot_start + step)
        slot_start += step
