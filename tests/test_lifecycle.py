"""Tests for the booking lifecycle state machine and hold expiry."""

from datetime import timedelta, timezone
from itertools import product

import pytest
from pydantic import ValidationError

from facility_booking.config import settings
from facility_booking.engine.lifecycle import (
    TRANSITIONS,
    allowed_targets,
    apply_status_change,
    hold_deadline,
    is_hold_expired,
    is_occupying,
    is_terminal,
    occupying_slots,
    sweep_expired_holds,
    validate_transition,
)
from facility_booking.errors import (
    InvalidInputError,
    InvalidTransitionError,
    PaymentBlocksCancellationError,
)
from facility_booking.schemas.booking_schema import BookingStatus, PaymentStatus, StatusChange
from tests.conftest import NOW, TENANT_ID, make_booking

ALLOWED = {(t.from_status, t.to_status) for t in TRANSITIONS}


class TestTransitionTable:
    def test_allowed_pairs(self):
        assert ALLOWED == {
            (BookingStatus.PENDING, BookingStatus.CONFIRMED),
            (BookingStatus.PENDING, BookingStatus.CANCELLED),
            (BookingStatus.CONFIRMED, BookingStatus.CANCELLED),
            (BookingStatus.CONFIRMED, BookingStatus.COMPLETED),
            (BookingStatus.CONFIRMED, BookingStatus.NO_SHOW),
        }

    def test_closure(self):
        for current, target in product(BookingStatus, repeat=2):
            if current == target or (current, target) in ALLOWED:
                validate_transition(current, target)
            else:
                with pytest.raises(InvalidTransitionError):
                    validate_transition(current, target)

    def test_error_lists_allowed_targets(self):
        with pytest.raises(InvalidTransitionError, match="COMPLETED"):
            validate_transition(BookingStatus.CONFIRMED, BookingStatus.PENDING)

    @pytest.mark.parametrize(
        "status", [BookingStatus.CANCELLED, BookingStatus.COMPLETED, BookingStatus.NO_SHOW]
    )
    def test_terminal_statuses_have_no_exits(self, status):
        assert is_terminal(status)
        assert allowed_targets(status) == []

    def test_pending_not_terminal(self):
        assert not is_terminal(BookingStatus.PENDING)


class TestApplyStatusChange:
    def test_confirm_pending_clears_hold(self):
        booking = make_booking(status=BookingStatus.PENDING)
        updated = apply_status_change(
            booking, StatusChange(status=BookingStatus.CONFIRMED), NOW,
        )
        assert updated.status == BookingStatus.CONFIRMED
        assert updated.hold_until is None
        assert booking.status == BookingStatus.PENDING

    def test_cancel_requires_reason(self):
        booking = make_booking()
        with pytest.raises(InvalidInputError, match="reason"):
            apply_status_change(booking, StatusChange(status=BookingStatus.CANCELLED), NOW)

    def test_cancel_rejects_short_reason(self):
        booking = make_booking()
        change = StatusChange(status=BookingStatus.CANCELLED, cancellation_reason="  no ")
        with pytest.raises(InvalidInputError):
            apply_status_change(booking, change, NOW)

    def test_cancel_with_reason(self):
        booking = make_booking()
        change = StatusChange(
            status=BookingStatus.CANCELLED, cancellation_reason="  Customer request  ",
        )
        updated = apply_status_change(booking, change, NOW)
        assert updated.status == BookingStatus.CANCELLED
        assert updated.cancellation_reason == "Customer request"
        assert updated.hold_until is None

    def test_reason_rejected_when_not_cancelling(self):
        booking = make_booking(status=BookingStatus.PENDING)
        change = StatusChange(status=BookingStatus.CONFIRMED, cancellation_reason="Changed mind")
        with pytest.raises(InvalidInputError, match="only allowed"):
            apply_status_change(booking, change, NOW)

    def test_reason_rejected_without_status_change(self):
        booking = make_booking()
        change = StatusChange(cancellation_reason="Changed mind")
        with pytest.raises(InvalidInputError):
            apply_status_change(booking, change, NOW)

    def test_paid_booking_cannot_be_cancelled(self):
        booking = make_booking(payment_status=PaymentStatus.PAID)
        change = StatusChange(status=BookingStatus.CANCELLED, cancellation_reason="Rain delay")
        with pytest.raises(PaymentBlocksCancellationError):
            apply_status_change(booking, change, NOW)

    def test_partially_paid_booking_cannot_be_cancelled(self):
        booking = make_booking(payment_status=PaymentStatus.PARTIALLY_PAID)
        change = StatusChange(status=BookingStatus.CANCELLED, cancellation_reason="Rain delay")
        with pytest.raises(PaymentBlocksCancellationError):
            apply_status_change(booking, change, NOW)

    def test_unpaid_booking_can_be_cancelled(self):
        booking = make_booking(payment_status=PaymentStatus.PENDING)
        change = StatusChange(status=BookingStatus.CANCELLED, cancellation_reason="Rain delay")
        assert apply_status_change(booking, change, NOW).status == BookingStatus.CANCELLED

    def test_refunded_booking_can_be_cancelled(self):
        booking = make_booking(payment_status=PaymentStatus.REFUNDED)
        change = StatusChange(status=BookingStatus.CANCELLED, cancellation_reason="Rain delay")
        assert apply_status_change(booking, change, NOW).status == BookingStatus.CANCELLED

    def test_payment_blocks_before_reason_check(self):
        booking = make_booking(payment_status=PaymentStatus.PAID)
        with pytest.raises(PaymentBlocksCancellationError):
            apply_status_change(booking, StatusChange(status=BookingStatus.CANCELLED), NOW)

    def test_invalid_transition(self):
        booking = make_booking(status=BookingStatus.COMPLETED)
        with pytest.raises(InvalidTransitionError):
            apply_status_change(booking, StatusChange(status=BookingStatus.CONFIRMED), NOW)

    def test_same_status_is_noop(self):
        booking = make_booking(status=BookingStatus.PENDING)
        updated = apply_status_change(
            booking, StatusChange(status=BookingStatus.PENDING), NOW + timedelta(minutes=5),
        )
        assert updated == booking

    def test_payment_only_change(self):
        booking = make_booking()
        updated = apply_status_change(
            booking, StatusChange(payment_status=PaymentStatus.PAID), NOW,
        )
        assert updated.payment_status == PaymentStatus.PAID
        assert updated.status == BookingStatus.CONFIRMED

    def test_status_and_payment_together(self):
        booking = make_booking(status=BookingStatus.PENDING)
        updated = apply_status_change(
            booking,
            StatusChange(status=BookingStatus.CONFIRMED, payment_status=PaymentStatus.PAID),
            NOW,
        )
        assert updated.status == BookingStatus.CONFIRMED
        assert updated.payment_status == PaymentStatus.PAID

    def test_naive_now_rejected(self):
        booking = make_booking()
        with pytest.raises(InvalidInputError):
            apply_status_change(
                booking, StatusChange(payment_status=PaymentStatus.PAID), NOW.replace(tzinfo=None),
            )


class TestHoldExpiry:
    def test_hold_deadline(self):
        assert hold_deadline(NOW) == NOW + timedelta(minutes=settings.lifecycle.hold_minutes)

    def test_monotonic(self):
        booking = make_booking(status=BookingStatus.PENDING, hold_until=NOW)
        assert not is_hold_expired(booking, NOW - timedelta(microseconds=1))
        assert not is_hold_expired(booking, NOW - timedelta(minutes=10))
        assert is_hold_expired(booking, NOW)
        assert is_hold_expired(booking, NOW + timedelta(days=1))

    def test_confirmed_never_expires(self):
        assert not is_hold_expired(make_booking(), NOW + timedelta(days=365))

    def test_expired_hold_is_swept(self):
        booking = make_booking(
            status=BookingStatus.PENDING, hold_until=NOW - timedelta(minutes=1),
        )
        assert is_hold_expired(booking, NOW)

        result = sweep_expired_holds([booking], NOW, TENANT_ID)
        assert result.cancelled_ids == [booking.id]
        swept = result.cancelled[0]
        assert swept.status == BookingStatus.CANCELLED
        assert swept.hold_until is None
        assert swept.cancellation_reason == "Auto-cancelled: hold expired"

    def test_sweep_ignores_live_holds_and_other_tenants(self):
        bookings = [
            make_booking("b-1", status=BookingStatus.PENDING, hold_until=NOW + timedelta(minutes=1)),
            make_booking(
                "b-2", status=BookingStatus.PENDING,
                hold_until=NOW - timedelta(minutes=1), tenant_id="tenant-2",
            ),
            make_booking("b-3"),
        ]
        assert sweep_expired_holds(bookings, NOW, TENANT_ID).cancelled == []

    def test_sweep_is_idempotent(self):
        bookings = [
            make_booking("b-1", status=BookingStatus.PENDING, hold_until=NOW - timedelta(minutes=1)),
            make_booking("b-2", status=BookingStatus.PENDING, hold_until=NOW + timedelta(minutes=1)),
        ]
        first = sweep_expired_holds(bookings, NOW, TENANT_ID)
        swept = {b.id: b for b in first.cancelled}
        after = [swept.get(b.id, b) for b in bookings]

        second = sweep_expired_holds(after, NOW, TENANT_ID)
        assert first.cancelled_ids == ["b-1"]
        assert second.cancelled == []

    def test_sweep_bypasses_payment_check(self):
        booking = make_booking(
            status=BookingStatus.PENDING,
            payment_status=PaymentStatus.PAID,
            hold_until=NOW - timedelta(minutes=1),
        )
        assert sweep_expired_holds([booking], NOW, TENANT_ID).cancelled_ids == [booking.id]


class TestOccupying:
    def test_confirmed_and_live_pending_occupy(self):
        assert is_occupying(make_booking(), NOW)
        assert is_occupying(make_booking(status=BookingStatus.PENDING), NOW)

    def test_expired_hold_does_not_occupy(self):
        booking = make_booking(status=BookingStatus.PENDING, hold_until=NOW - timedelta(seconds=1))
        assert not is_occupying(booking, NOW)

    @pytest.mark.parametrize(
        "status", [BookingStatus.COMPLETED, BookingStatus.NO_SHOW]
    )
    def test_finished_bookings_do_not_occupy(self, status):
        assert not is_occupying(make_booking(status=status), NOW)

    def test_occupying_slots_filtered_by_facility(self):
        bookings = [make_booking("b-1"), make_booking("b-2", facility_id="court-2")]
        slots = occupying_slots(bookings, NOW, facility_id="court-1")
        assert [s.id for s in slots] == ["b-1"]
        assert slots[0].booking_reference == "KH-2030-B-1"


class TestExpiredHoldChanges:
    def test_expired_hold_cannot_be_confirmed(self):
        booking = make_booking(status=BookingStatus.PENDING, hold_until=NOW - timedelta(minutes=5))
        with pytest.raises(InvalidTransitionError, match="expired"):
            apply_status_change(booking, StatusChange(status=BookingStatus.CONFIRMED), NOW)

    def test_hold_expiring_exactly_now_cannot_be_confirmed(self):
        booking = make_booking(status=BookingStatus.PENDING, hold_until=NOW)
        with pytest.raises(InvalidTransitionError):
            apply_status_change(booking, StatusChange(status=BookingStatus.CONFIRMED), NOW)

    def test_live_hold_can_be_confirmed(self):
        booking = make_booking(status=BookingStatus.PENDING, hold_until=NOW + timedelta(seconds=1))
        updated = apply_status_change(booking, StatusChange(status=BookingStatus.CONFIRMED), NOW)
        assert updated.status == BookingStatus.CONFIRMED

    def test_expired_hold_can_be_cancelled(self):
        booking = make_booking(status=BookingStatus.PENDING, hold_until=NOW - timedelta(minutes=5))
        change = StatusChange(status=BookingStatus.CANCELLED, cancellation_reason="Customer left")
        assert apply_status_change(booking, change, NOW).status == BookingStatus.CANCELLED


class TestSameStatusCancellation:
    def _cancelled(self):
        booking = make_booking()
        change = StatusChange(status=BookingStatus.CANCELLED, cancellation_reason="Customer request")
        return apply_status_change(booking, change, NOW)

    def test_repeat_cancel_keeps_original_reason(self):
        cancelled = self._cancelled()
        change = StatusChange(status=BookingStatus.CANCELLED, cancellation_reason="Different reason")
        assert apply_status_change(cancelled, change, NOW) == cancelled

    def test_repeat_cancel_with_short_reason_rejected(self):
        cancelled = self._cancelled()
        change = StatusChange(status=BookingStatus.CANCELLED, cancellation_reason="x")
        with pytest.raises(InvalidInputError):
            apply_status_change(cancelled, change, NOW)
        assert cancelled.cancellation_reason == "Customer request"

    def test_payment_update_on_cancelled_booking_keeps_reason(self):
        cancelled = self._cancelled()
        updated = apply_status_change(
            cancelled, StatusChange(payment_status=PaymentStatus.REFUNDED), NOW,
        )
        assert updated.payment_status == PaymentStatus.REFUNDED
        assert updated.cancellation_reason == "Customer request"


class TestCancelAndPayTogether:
    @pytest.mark.parametrize("payment", [PaymentStatus.PAID, PaymentStatus.PARTIALLY_PAID])
    def test_cancel_while_marking_paid_blocked(self, payment):
        booking = make_booking(payment_status=PaymentStatus.PENDING)
        change = StatusChange(
            status=BookingStatus.CANCELLED,
            payment_status=payment,
            cancellation_reason="Rain delay",
        )
        with pytest.raises(PaymentBlocksCancellationError, match=payment.value):
            apply_status_change(booking, change, NOW)

    def test_cancel_while_refunding_allowed(self):
        booking = make_booking(payment_status=PaymentStatus.PENDING)
        change = StatusChange(
            status=BookingStatus.CANCELLED,
            payment_status=PaymentStatus.REFUNDED,
            cancellation_reason="Rain delay",
        )
        updated = apply_status_change(booking, change, NOW)
        assert updated.status == BookingStatus.CANCELLED
        assert updated.payment_status == PaymentStatus.REFUNDED


class TestTimeInputs:
    def test_is_hold_expired_rejects_naive_now(self):
        booking = make_booking(status=BookingStatus.PENDING)
        with pytest.raises(InvalidInputError, match="timezone-aware"):
            is_hold_expired(booking, NOW.replace(tzinfo=None))

    def test_sweep_rejects_naive_now(self):
        booking = make_booking(status=BookingStatus.PENDING)
        with pytest.raises(InvalidInputError):
            sweep_expired_holds([booking], NOW.replace(tzinfo=None), TENANT_ID)

    def test_occupying_slots_rejects_naive_now(self):
        booking = make_booking(status=BookingStatus.PENDING)
        with pytest.raises(InvalidInputError):
            occupying_slots([booking], NOW.replace(tzinfo=None))

    def test_is_hold_expired_accepts_other_offsets(self):
        booking = make_booking(status=BookingStatus.PENDING, hold_until=NOW)
        riyadh = timezone(timedelta(hours=3))
        assert is_hold_expired(booking, NOW.astimezone(riyadh))

    def test_naive_hold_until_rejected(self):
        with pytest.raises(ValidationError, match="timezone-aware"):
            make_booking(status=BookingStatus.PENDING, hold_until=NOW.replace(tzinfo=None))

    def test_hold_until_normalized_to_utc(self):
        riyadh = timezone(timedelta(hours=3))
        booking = make_booking(status=BookingStatus.PENDING, hold_until=NOW.astimezone(riyadh))
        assert booking.hold_until == NOW
        assert booking.hold_until.tzinfo == timezone.utc
