"""
Availability expansion over a date range.

Only occupied intervals are ever stored; available slots are derived here
by generating each day's slot grid from operating hours and marking the
slots that overlap an occupied interval as BOOKED.
"""

import logging
from decimal import Decimal
from typing import Sequence

from facility_booking.engine.intervals import iter_day_slots, overlaps
from facility_booking.engine.pricing import calculate_price
from facility_booking.schemas.facility_schema import FacilityConfig
from facility_booking.schemas.slot_schema import (
    AvailabilityMap,
    AvailabilityStatus,
    DailyAvailability,
    DateRange,
    OccupiedSlot,
    PricedTimeSlot,
)
from facility_booking.utils import round_money

logger = logging.getLogger(__name__)


def occupancy_rate(booked: int, total: int) -> Decimal:
    """Percentage of booked slots, 0 when there are no slots at all."""
    if total == 0:
        return Decimal("0.00")
    return round_money(Decimal(100) * booked / total)


def calculate_availability(
    facility: FacilityConfig,
    date_range: DateRange,
    occupied_slots: Sequence[OccupiedSlot],
) -> AvailabilityMap:
    """
    Build the priced slot grid for every date in ``date_range``.

    Occupied slots of other facilities are ignored for marking, but
    ``occupied_slots`` is echoed back unchanged for display.
    """
    blocking = [s for s in occupied_slots if s.facility_id == facility.id]
    slots: list[PricedTimeSlot] = []
    days: list[DailyAvailability] = []

    for day in date_range.days():
        day_slots: list[PricedTimeSlot] = []
        for interval in iter_day_slots(facility, day):
            taken = any(overlaps(interval, s.interval) for s in blocking)
            price = calculate_price(interval, facility.pricing)
            day_slots.append(PricedTimeSlot(
                interval=interval,
                price=price.total,
                currency=price.currency,
                status=AvailabilityStatus.BOOKED if taken else AvailabilityStatus.AVAILABLE,
            ))

        open_slots = [s for s in day_slots if s.status == AvailabilityStatus.AVAILABLE]
        days.append(DailyAvailability(
            day=day,
            total_slots=len(day_slots),
            available_slots=len(open_slots),
            occupancy_rate=occupancy_rate(len(day_slots) - len(open_slots), len(day_slots)),
            is_fully_booked=bool(day_slots) and not open_slots,
            lowest_price=min((s.price for s in open_slots), default=None),
            currency=facility.pricing.currency,
        ))
        slots.extend(day_slots)

    available = [s for s in slots if s.status == AvailabilityStatus.AVAILABLE]
    booked_count = len(slots) - len(available)
    rate = occupancy_rate(booked_count, len(slots))

    logger.debug(
        "Availability for %s over %s..%s: %d/%d booked (%s%%)",
        facility.id, date_range.start, date_range.end, booked_count, len(slots), rate,
    )

    return AvailabilityMap(
        facility_id=facility.id,
        date_range=date_range,
        total_slots=len(slots),
        available_slots=available,
        occupied_slots=list(occupied_slots),
        occupancy_rate=rate,
        slots=slots,
        available_count=len(available),
        booked_count=booked_count,
        days=days,
    )
