from facility_booking.schemas.booking_schema import (
    Booking,
    BookingDecision,
    BookingPreviewResult,
    BookingRequest,
    BookingStatus,
    HoldSweepResult,
    PaymentStatus,
    StatusChange,
)
from facility_booking.schemas.conflict_schema import ConflictResult, ConflictType
from facility_booking.schemas.facility_schema import FacilityConfig, PricingConfig
from facility_booking.schemas.pricing_schema import PriceBreakdown, PromoKind, Promotion
from facility_booking.schemas.slot_schema import (
    AvailabilityMap,
    AvailabilityStatus,
    DailyAvailability,
    DateRange,
    OccupiedSlot,
    PricedTimeSlot,
    SlotStatus,
    TimeInterval,
)

__all__ = [
    "Booking", "BookingDecision", "BookingPreviewResult", "BookingRequest",
    "BookingStatus", "HoldSweepResult", "PaymentStatus", "StatusChange",
    "ConflictResult", "ConflictType", "FacilityConfig", "PricingConfig",
    "PriceBreakdown", "PromoKind", "Promotion",
    "AvailabilityMap", "AvailabilityStatus", "DailyAvailability", "DateRange",
    "OccupiedSlot", "PricedTimeSlot", "SlotStatus", "TimeInterval",
]
