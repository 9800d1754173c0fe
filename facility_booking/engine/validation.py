"""Request-level checks run before a preview or booking is evaluated."""

import logging
from datetime import datetime
from typing import Optional

from facility_booking.config import settings
from facility_booking.engine.intervals import contains, local_date, operating_window
from facility_booking.schemas.booking_schema import BookingRequest
from facility_booking.schemas.facility_schema import FacilityConfig
from facility_booking.utils import require_aware

logger = logging.getLogger(__name__)


def validate_booking_request(
    request: BookingRequest,
    facility: FacilityConfig,
    now: Optional[datetime] = None,
) -> list[str]:
    """
    Return human-readable validation errors (empty when the request is valid).

    Checks the request targets this facility, does not start in the past
    (only when ``now`` is given), fits in the operating hours of its start
    date, and, when slot granularity is enforced, is a whole number of slots.
    """
    errors: list[str] = []
    interval = request.interval
    if now is not None:
        now = require_aware(now)

    if request.facility_id != facility.id:
        errors.append(f"Facility {request.facility_id} does not match configuration {facility.id}.")

    if now is not None and interval.start < now:
        errors.append("Cannot book in the past.")

    window = operating_window(facility, local_date(facility, interval.start))
    if not contains(window, interval):
        errors.append(f"Booking must be within operating hours ({facility.format_hours()}).")

    if settings.booking.enforce_slot_granularity:
        slot = facility.slot_duration_minutes
        minutes, remainder = divmod(interval.duration.total_seconds(), 60)
        if minutes < slot:
            errors.append(f"Minimum booking duration is {slot} minutes.")
        if remainder or int(minutes) % slot:
            errors.append(f"Booking duration must be a multiple of {slot} minutes.")

    if errors:
        logger.debug("Request for %s rejected: %s", request.facility_id, errors)
    return errors
