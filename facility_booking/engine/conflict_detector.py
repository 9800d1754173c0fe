"""
Conflict detection and alternative-slot search.

Given a requested interval and the slots already occupying a facility,
decides bookability, classifies the first conflict in start-time order,
and (when a facility config is supplied) proposes nearby conflict-free
alternatives of the same length.

Usage:
    result = detect_conflicts("court-1", requested, occupied, facility=config)
    if result.has_conflict:
        print(result.conflict_type, result.suggested_alternatives)
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, Iterator, Optional, Sequence

from facility_booking.config import settings
from facility_booking.engine.intervals import contains, local_date, operating_window, overlaps
from facility_booking.engine.pricing import calculate_price
from facility_booking.schemas.conflict_schema import ConflictResult, ConflictType
from facility_booking.schemas.facility_schema import FacilityConfig
from facility_booking.schemas.slot_schema import (
    AvailabilityStatus,
    OccupiedSlot,
    PricedTimeSlot,
    TimeInterval,
)
from facility_booking.utils import require_aware

logger = logging.getLogger(__name__)

NO_CONFLICT_MESSAGE = "No conflicts detected. Time slot is available."


def classify_conflict(requested: TimeInterval, existing: TimeInterval) -> Optional[ConflictType]:
    """Relationship of ``requested`` to one overlapping ``existing`` interval."""
    if not overlaps(requested, existing):
        return None
    if requested == existing:
        return ConflictType.EXACT_DUPLICATE
    if contains(requested, existing):
        return ConflictType.CONTAINS
    if contains(existing, requested):
        return ConflictType.CONTAINED
    return ConflictType.PARTIAL_OVERLAP


def conflict_message(conflict_type: ConflictType, conflicting: Sequence[OccupiedSlot]) -> str:
    count = len(conflicting)
    noun = "slot" if count == 1 else "slots"
    if conflict_type == ConflictType.EXACT_DUPLICATE:
        return "This exact time slot is already booked."
    if conflict_type == ConflictType.CONTAINED:
        return "The requested time falls within an existing booking."
    if conflict_type == ConflictType.CONTAINS:
        return f"The requested time contains {count} existing {noun}."
    return f"The requested time partially overlaps {count} existing {noun}."


def _facility_slots(facility_id: str, occupied: Iterable[OccupiedSlot]) -> list[OccupiedSlot]:
    relevant = []
    for slot in occupied:
        if slot.facility_id != facility_id:
            logger.debug("Ignoring slot %s of facility %s", slot.id, slot.facility_id)
            continue
        relevant.append(slot)
    return relevant


def find_conflicting_slots(
    requested: TimeInterval, occupied: Iterable[OccupiedSlot]
) -> list[OccupiedSlot]:
    """All slots overlapping ``requested``, ordered by start then id."""
    hits = [slot for slot in occupied if overlaps(requested, slot.interval)]
    return sorted(hits, key=lambda s: (s.interval.start, s.id))


def _search_offsets(step: timedelta) -> Iterator[timedelta]:
    """+1, -1, +2, -2, ... steps: nearest first, later start wins ties."""
    k = 1
    while True:
        yield step * k
        yield -step * k
        k += 1


def find_alternative_slots(
    requested: TimeInterval,
    occupied: Sequence[OccupiedSlot],
    facility: FacilityConfig,
    max_alternatives: Optional[int] = None,
    step_minutes: Optional[int] = None,
    now: Optional[datetime] = None,
) -> list[PricedTimeSlot]:
    """
    Same-length conflict-free intervals near ``requested``.

    Candidates are shifted from the requested start in fixed steps, kept
    inside the operating hours of the requested date, and skipped when
    they start before ``now`` (if given). Each accepted candidate is priced.
    """
    limit = settings.search.alternative_count if max_alternatives is None else max_alternatives
    step_minutes = step_minutes or settings.search.alternative_step_minutes
    step = timedelta(minutes=step_minutes or facility.slot_duration_minutes)
    if limit <= 0:
        return []
    if now is not None:
        now = require_aware(now)

    window = operating_window(facility, local_date(facility, requested.start))
    alternatives: list[PricedTimeSlot] = []
    later_open = earlier_open = True

    for offset in _search_offsets(step):
        if not (later_open or earlier_open) or len(alternatives) >= limit:
            break
        is_later = offset > timedelta(0)
        if (is_later and not later_open) or (not is_later and not earlier_open):
            continue

        candidate = requested.shifted(offset)
        # Past closing (or before opening) a direction can never re-enter the window.
        if is_later and candidate.end > window.end:
            later_open = False
            continue
        if not is_later and candidate.start < window.start:
            earlier_open = False
            continue
        if not contains(window, candidate):
            continue
        if now is not None and candidate.start < now:
            continue
        if any(overlaps(candidate, slot.interval) for slot in occupied):
            continue

        price = calculate_price(candidate, facility.pricing)
        alternatives.append(PricedTimeSlot(
            interval=candidate,
            price=price.total,
            currency=price.currency,
            status=AvailabilityStatus.AVAILABLE,
        ))
        logger.debug("Alternative accepted: %s", candidate.format_range())

    return alternatives


def detect_conflicts(
    facility_id: str,
    requested: TimeInterval,
    occupied_slots: Iterable[OccupiedSlot],
    facility: Optional[FacilityConfig] = None,
    now: Optional[datetime] = None,
) -> ConflictResult:
    """
    Check ``requested`` against the slots occupying ``facility_id``.

    Slots belonging to other facilities are ignored. Never raises for a
    conflict; the result describes it. Alternatives are only searched when
    ``facility`` is supplied, since the search needs operating hours.
    """
    if now is not None:
        now = require_aware(now)
    relevant = _facility_slots(facility_id, occupied_slots)
    conflicting = find_conflicting_slots(requested, relevant)

    if not conflicting:
        return ConflictResult(has_conflict=False, message=NO_CONFLICT_MESSAGE)

    conflict_type = classify_conflict(requested, conflicting[0].interval)
    logger.info(
        "Conflict on facility %s for %s: %s with %d slot(s)",
        facility_id, requested.format_range(), conflict_type.value, len(conflicting),
    )

    alternatives: list[PricedTimeSlot] = []
    if facility is not None:
        alternatives = find_alternative_slots(requested, relevant, facility, now=now)

    return ConflictResult(
        has_conflict=True,
        conflict_type=conflict_type,
        conflicting_slots=conflicting,
        message=conflict_message(conflict_type, conflicting),
        suggested_alternatives=alternatives,
    )
