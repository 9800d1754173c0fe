"""
Booking lifecycle state machine.

Defines the legal status transitions, the side effects coupled to them
(hold window, cancellation reason, payment precondition), and the
hold-expiry rule that turns stale PENDING holds into cancellations.

Every function here is pure: it takes a booking value and returns a new
one. Persisting the result, and serializing concurrent changes to the same
facility, is the caller's job.

Usage:
    validate_transition(BookingStatus.PENDING, BookingStatus.CONFIRMED)
    updated = apply_status_change(booking, StatusChange(status=BookingStatus.CONFIRMED), now)
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from facility_booking.config import settings
from facility_booking.errors import (
    InvalidInputError,
    InvalidTransitionError,
    PaymentBlocksCancellationError,
)
from facility_booking.schemas.booking_schema import (
    TERMINAL_STATUSES,
    Booking,
    BookingStatus,
    HoldSweepResult,
    PaymentStatus,
    StatusChange,
)
from facility_booking.schemas.slot_schema import OccupiedSlot, SlotStatus
from facility_booking.utils import require_aware

logger = logging.getLogger(__name__)

PAYMENT_BLOCKS_CANCELLATION = frozenset({PaymentStatus.PAID, PaymentStatus.PARTIALLY_PAID})


@dataclass(frozen=True)
class Transition:
    """A single valid status transition."""
    from_status: BookingStatus
    to_status: BookingStatus


TRANSITIONS: tuple[Transition, ...] = (
    # --- Hold ---
    Transition(BookingStatus.PENDING, BookingStatus.CONFIRMED),
    Transition(BookingStatus.PENDING, BookingStatus.CANCELLED),

    # --- Confirmed outcomes ---
    Transition(BookingStatus.CONFIRMED, BookingStatus.CANCELLED),
    Transition(BookingStatus.CONFIRMED, BookingStatus.COMPLETED),
    Transition(BookingStatus.CONFIRMED, BookingStatus.NO_SHOW),

    # CANCELLED, COMPLETED and NO_SHOW are terminal
)


def allowed_targets(status: BookingStatus) -> list[BookingStatus]:
    """Statuses reachable in one step from ``status``."""
    return [t.to_status for t in TRANSITIONS if t.from_status == status]


def is_terminal(status: BookingStatus) -> bool:
    return status in TERMINAL_STATUSES


def validate_transition(current: BookingStatus, next_status: BookingStatus) -> None:
    """
    Check a status change against the transition table.

    Changing to the same status is always a no-op success.

    Raises:
        InvalidTransitionError: If the table has no such transition.
    """
    if current == next_status:
        return
    allowed = allowed_targets(current)
    if next_status not in allowed:
        raise InvalidTransitionError(
            f"No valid transition from '{current.value}' to '{next_status.value}'. "
            f"Allowed: {[s.value for s in allowed]}"
        )


def hold_deadline(now: datetime) -> datetime:
    """When a hold placed at ``now`` expires."""
    return require_aware(now) + timedelta(minutes=settings.lifecycle.hold_minutes)


def _clean_reason(reason: Optional[str]) -> Optional[str]:
    if reason is None:
        return None
    return reason.strip() or None


def apply_status_change(booking: Booking, change: StatusChange, now: datetime) -> Booking:
    """
    Apply a status and/or payment-status change and return the new booking.

    An expired hold can only be cancelled; it must not come back to life
    after its slot has been released.

    Raises:
        InvalidTransitionError: The status change is not in the table, or it
            moves an expired hold anywhere but CANCELLED.
        PaymentBlocksCancellationError: Cancelling a booking that is, or
            would become, paid or partially paid.
        InvalidInputError: Cancellation reason missing, too short, or supplied
            while the resulting status is not CANCELLED.
    """
    now = require_aware(now)

    entering = change.status is not None and change.status != booking.status
    effective = change.status or booking.status

    if change.status is not None:
        validate_transition(booking.status, change.status)

    if entering and change.status != BookingStatus.CANCELLED and is_hold_expired(booking, now):
        raise InvalidTransitionError(
            f"Hold on booking {booking.id} expired at {booking.hold_until.isoformat()}; "
            "it can only be cancelled."
        )

    payment_after = change.payment_status or booking.payment_status
    if (
        entering
        and change.status == BookingStatus.CANCELLED
        and (
            booking.payment_status in PAYMENT_BLOCKS_CANCELLATION
            or payment_after in PAYMENT_BLOCKS_CANCELLATION
        )
    ):
        blocking = (
            booking.payment_status
            if booking.payment_status in PAYMENT_BLOCKS_CANCELLATION else payment_after
        )
        raise PaymentBlocksCancellationError(
            f"Booking {booking.id} is {blocking.value}; "
            "paid bookings require a refund before cancellation."
        )

    reason = _clean_reason(change.cancellation_reason)
    min_length = settings.lifecycle.min_cancellation_reason_length
    if reason is not None and effective != BookingStatus.CANCELLED:
        raise InvalidInputError("Cancellation reason is only allowed when cancelling a booking.")
    if effective == BookingStatus.CANCELLED and (entering or reason is not None):
        if reason is None or len(reason) < min_length:
            raise InvalidInputError(
                f"Cancellation reason is required (at least {min_length} characters)."
            )

    updates: dict = {}
    if entering:
        updates["status"] = change.status
        updates["hold_until"] = hold_deadline(now) if change.status == BookingStatus.PENDING else None
        # The reason is recorded once, when the booking is cancelled.
        updates["cancellation_reason"] = reason if change.status == BookingStatus.CANCELLED else None
        logger.info(
            "Booking %s: %s -> %s", booking.id, booking.status.value, change.status.value,
        )
    if change.payment_status is not None:
        updates["payment_status"] = change.payment_status

    return booking.model_copy(update=updates)


def is_hold_expired(booking: Booking, now: datetime) -> bool:
    """True when a PENDING hold has reached its deadline (``hold_until <= now``)."""
    if booking.status != BookingStatus.PENDING or booking.hold_until is None:
        return False
    return booking.hold_until <= require_aware(now)


def expire_hold(booking: Booking) -> Booking:
    """The system cancellation of an expired hold (no reason or payment checks)."""
    return booking.model_copy(update={
        "status": BookingStatus.CANCELLED,
        "hold_until": None,
        "cancellation_reason": settings.lifecycle.auto_cancel_reason,
    })


def sweep_expired_holds(
    bookings: Iterable[Booking], now: datetime, tenant_id: str
) -> HoldSweepResult:
    """
    Cancel every expired hold belonging to ``tenant_id``.

    Idempotent: swept bookings are no longer PENDING, so a second sweep at
    the same ``now`` over the updated bookings cancels nothing new. The
    system cancellation bypasses the reason and payment checks.
    """
    now = require_aware(now)
    cancelled = [
        expire_hold(booking)
        for booking in bookings
        if booking.tenant_id == tenant_id and is_hold_expired(booking, now)
    ]

    if cancelled:
        logger.info("Swept %d expired hold(s) for tenant %s", len(cancelled), tenant_id)
    return HoldSweepResult(tenant_id=tenant_id, swept_at=now, cancelled=cancelled)


def is_occupying(booking: Booking, now: datetime) -> bool:
    """CONFIRMED bookings and unexpired holds block new bookings."""
    if booking.status == BookingStatus.CONFIRMED:
        return True
    return booking.status == BookingStatus.PENDING and not is_hold_expired(booking, now)


def occupying_slots(
    bookings: Iterable[Booking], now: datetime, facility_id: Optional[str] = None
) -> list[OccupiedSlot]:
    """Convert the bookings that currently occupy time into OccupiedSlots."""
    return [
        OccupiedSlot(
            id=b.id,
            facility_id=b.facility_id,
            interval=b.interval,
            status=SlotStatus.BOOKED,
            booking_reference=b.booking_reference or b.id,
        )
        for b in bookings
        if (facility_id is None or b.facility_id == facility_id) and is_occupying(b, now)
    ]
