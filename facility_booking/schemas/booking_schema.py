"""Booking, status-change, preview and decision data models."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from facility_booking.schemas.conflict_schema import ConflictResult
from facility_booking.schemas.pricing_schema import PriceBreakdown
from facility_booking.schemas.slot_schema import PricedTimeSlot, TimeInterval
from facility_booking.utils import to_utc


class BookingStatus(str, Enum):
    """Lifecycle status of a booking."""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"


TERMINAL_STATUSES = frozenset(
    {BookingStatus.CANCELLED, BookingStatus.COMPLETED, BookingStatus.NO_SHOW}
)


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"
    REFUNDED = "REFUNDED"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"


class BookingRequest(BaseModel):
    """A request to preview or book one interval at one facility."""

    model_config = ConfigDict(frozen=True)

    facility_id: str
    interval: TimeInterval
    promo_code: Optional[str] = None
    customer_name: str = ""
    customer_phone: str = ""
    status: BookingStatus = BookingStatus.CONFIRMED
    payment_status: PaymentStatus = PaymentStatus.PENDING


class Booking(BaseModel):
    """A booking as held by the caller's store.

    ``hold_until`` is set exactly when ``status`` is PENDING.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    tenant_id: str
    facility_id: str
    interval: TimeInterval
    status: BookingStatus = BookingStatus.CONFIRMED
    payment_status: PaymentStatus = PaymentStatus.PENDING
    hold_until: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    price_breakdown: PriceBreakdown
    total_amount: Decimal
    currency: str
    booking_reference: Optional[str] = None
    customer_name: str = ""
    customer_phone: str = ""
    created_by_user_id: Optional[str] = None

    @field_validator("hold_until")
    @classmethod
    def _hold_in_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return None if value is None else to_utc(value)

    @model_validator(mode="after")
    def _hold_matches_status(self) -> "Booking":
        if (self.status == BookingStatus.PENDING) != (self.hold_until is not None):
            raise ValueError(
                f"hold_until must be set iff status is PENDING (status={self.status.value})"
            )
        return self

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class StatusChange(BaseModel):
    """Requested changes to a booking's status and/or payment status."""

    model_config = ConfigDict(frozen=True)

    status: Optional[BookingStatus] = None
    payment_status: Optional[PaymentStatus] = None
    cancellation_reason: Optional[str] = None


class BookingPreviewResult(BaseModel):
    """Read-only answer to "can I book this, and for how much"."""

    model_config = ConfigDict(frozen=True)

    can_book: bool
    price_breakdown: PriceBreakdown
    conflict: Optional[ConflictResult] = None
    suggested_alternatives: list[PricedTimeSlot] = Field(default_factory=list)
    validation_errors: list[str] = Field(default_factory=list)


class BookingDecision(BaseModel):
    """Result of proposing a new booking: the booking value, or the conflict."""

    model_config = ConfigDict(frozen=True)

    accepted: bool
    booking: Optional[Booking] = None
    conflict: Optional[ConflictResult] = None


class HoldSweepResult(BaseModel):
    """Bookings cancelled by one expired-hold sweep."""

    model_config = ConfigDict(frozen=True)

    tenant_id: str
    swept_at: datetime
    cancelled: list[Booking] = Field(default_factory=list)

    @property
    def cancelled_ids(self) -> list[str]:
        return [b.id for b in self.cancelled]
