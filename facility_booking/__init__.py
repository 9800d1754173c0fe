"""Booking domain engine for a multi-tenant facility-booking platform."""

from facility_booking.engine import (
    apply_status_change,
    calculate_availability,
    calculate_price,
    detect_conflicts,
    is_hold_expired,
    occupying_slots,
    preview_booking,
    propose_booking,
    sweep_expired_holds,
    validate_transition,
)
from facility_booking.errors import (
    BookingEngineError,
    InvalidInputError,
    InvalidTransitionError,
    PaymentBlocksCancellationError,
)

__all__ = [
    "apply_status_change", "calculate_availability", "calculate_price",
    "detect_conflicts", "is_hold_expired", "occupying_slots", "preview_booking",
    "propose_booking", "sweep_expired_holds", "validate_transition",
    "BookingEngineError", "InvalidInputError", "InvalidTransitionError",
    "PaymentBlocksCancellationError",
]
