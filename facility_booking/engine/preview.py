"""
Booking preview and proposal.

``preview_booking`` is the read-only "can I book this, and for how much"
evaluation. ``propose_booking`` runs the same checks and, when the slot is
clear, produces the Booking value the caller should persist.
"""

import logging
from datetime import datetime
from typing import Optional, Sequence

from facility_booking.engine.conflict_detector import detect_conflicts
from facility_booking.engine.lifecycle import hold_deadline
from facility_booking.engine.pricing import calculate_price, zero_price
from facility_booking.engine.promotions import PromoLookup
from facility_booking.engine.validation import validate_booking_request
from facility_booking.errors import InvalidInputError
from facility_booking.schemas.booking_schema import (
    Booking,
    BookingDecision,
    BookingPreviewResult,
    BookingRequest,
    BookingStatus,
)
from facility_booking.schemas.facility_schema import FacilityConfig
from facility_booking.schemas.slot_schema import OccupiedSlot
from facility_booking.utils import generate_booking_reference, require_aware

logger = logging.getLogger(__name__)

INITIAL_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})


def preview_booking(
    request: BookingRequest,
    facility: FacilityConfig,
    occupied_slots: Sequence[OccupiedSlot],
    now: Optional[datetime] = None,
    promo_lookup: Optional[PromoLookup] = None,
) -> BookingPreviewResult:
    """
    Evaluate bookability and price without changing anything.

    Identical inputs (including ``now``) always produce an equal result.
    """
    if now is not None:
        now = require_aware(now)
    errors = validate_booking_request(request, facility, now)
    if errors:
        return BookingPreviewResult(
            can_book=False,
            price_breakdown=zero_price(facility.pricing.currency),
            validation_errors=errors,
        )

    conflict = detect_conflicts(
        facility.id, request.interval, occupied_slots, facility=facility, now=now,
    )
    price = calculate_price(
        request.interval, facility.pricing, request.promo_code, promo_lookup,
    )

    if conflict.has_conflict:
        return BookingPreviewResult(
            can_book=False,
            price_breakdown=price,
            conflict=conflict,
            suggested_alternatives=conflict.suggested_alternatives,
        )

    return BookingPreviewResult(can_book=True, price_breakdown=price)


def propose_booking(
    request: BookingRequest,
    facility: FacilityConfig,
    occupied_slots: Sequence[OccupiedSlot],
    now: datetime,
    booking_id: str,
    tenant_id: str,
    sequence_number: int,
    created_by_user_id: Optional[str] = None,
    promo_lookup: Optional[PromoLookup] = None,
) -> BookingDecision:
    """
    Build the new Booking for a request, or report why it cannot be made.

    Validation failures raise InvalidInputError; a conflict is returned as
    ``accepted=False`` with the ConflictResult.
    """
    now = require_aware(now)

    if request.status not in INITIAL_STATUSES:
        raise InvalidInputError(
            f"New bookings start as PENDING or CONFIRMED, not {request.status.value}."
        )
    errors = validate_booking_request(request, facility, now)
    if errors:
        raise InvalidInputError("; ".join(errors))

    conflict = detect_conflicts(
        facility.id, request.interval, occupied_slots, facility=facility, now=now,
    )
    if conflict.has_conflict:
        return BookingDecision(accepted=False, conflict=conflict)

    price = calculate_price(request.interval, facility.pricing, request.promo_code, promo_lookup)
    booking = Booking(
        id=booking_id,
        tenant_id=tenant_id,
        facility_id=facility.id,
        interval=request.interval,
        status=request.status,
        payment_status=request.payment_status,
        hold_until=hold_deadline(now) if request.status == BookingStatus.PENDING else None,
        price_breakdown=price,
        total_amount=price.total,
        currency=price.currency,
        booking_reference=generate_booking_reference(sequence_number, year=now.year),
        customer_name=request.customer_name,
        customer_phone=request.customer_phone,
        created_by_user_id=created_by_user_id,
    )
    logger.info(
        "Proposed booking %s (%s) for %s: %s %s",
        booking.booking_reference, booking.status.value,
        request.interval.format_range(), price.total, price.currency,
    )
    return BookingDecision(accepted=True, booking=booking)
