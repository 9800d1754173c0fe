"""
Deterministic price calculation.

basePrice = round2(hours x rate); discount from an optional promo code;
total = max(0, basePrice - discount). Each monetary value is rounded
half-up exactly once, from unrounded inputs.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from facility_booking.engine.intervals import duration_hours
from facility_booking.engine.promotions import PromoLookup, discount_for, lookup_promotion
from facility_booking.schemas.facility_schema import PricingConfig
from facility_booking.schemas.pricing_schema import PriceBreakdown
from facility_booking.schemas.slot_schema import TimeInterval
from facility_booking.utils import round_money

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
HOURS_PRECISION = Decimal("0.0001")


def calculate_price(
    interval: TimeInterval,
    pricing: PricingConfig,
    promo_code: Optional[str] = None,
    promo_lookup: Optional[PromoLookup] = None,
) -> PriceBreakdown:
    """
    Price one interval.

    An unrecognized promo code is not an error: it is logged and priced
    as no discount. Currency is passed through unchanged.
    """
    hours = duration_hours(interval)
    base_price = round_money(hours * pricing.base_price_per_hour)

    discount = ZERO
    applied_code = None
    if promo_code and promo_code.strip():
        lookup = promo_lookup or lookup_promotion
        promotion = lookup(promo_code)
        if promotion is None:
            logger.info("Ignoring unrecognized promo code %r", promo_code)
        else:
            discount = discount_for(promotion, base_price)
            applied_code = promotion.code
            logger.debug("Promo %s grants %s on %s", applied_code, discount, base_price)

    total = max(ZERO, base_price - discount)

    return PriceBreakdown(
        duration_hours=hours.quantize(HOURS_PRECISION, rounding=ROUND_HALF_UP),
        base_price=base_price,
        discount=discount,
        total=total,
        currency=pricing.currency,
        promo_code=applied_code,
    )


def zero_price(currency: str) -> PriceBreakdown:
    """Empty breakdown returned alongside validation errors."""
    return PriceBreakdown(
        duration_hours=Decimal("0.0000"),
        base_price=ZERO,
        discount=ZERO,
        total=ZERO,
        currency=currency,
    )
