from facility_booking.engine.availability import calculate_availability
from facility_booking.engine.conflict_detector import detect_conflicts, find_alternative_slots
from facility_booking.engine.intervals import contains, duration_hours, overlaps
from facility_booking.engine.lifecycle import (
    apply_status_change,
    is_hold_expired,
    occupying_slots,
    sweep_expired_holds,
    validate_transition,
)
from facility_booking.engine.preview import preview_booking, propose_booking
from facility_booking.engine.pricing import calculate_price
from facility_booking.engine.validation import validate_booking_request

__all__ = [
    "calculate_availability",
    "detect_conflicts",
    "find_alternative_slots",
    "contains",
    "duration_hours",
    "overlaps",
    "apply_status_change",
    "is_hold_expired",
    "occupying_slots",
    "sweep_expired_holds",
    "validate_transition",
    "preview_booking",
    "propose_booking",
    "calculate_price",
    "validate_booking_request",
]
