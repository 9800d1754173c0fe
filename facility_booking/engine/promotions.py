"""
Promo code table.

The pricing engine consumes promotions through a plain lookup callable
(``PromoLookup``); callers with their own promo service pass theirs in.
The default table is built once from the ``PROMO_CODES`` setting.
"""

import logging
from decimal import Decimal
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Optional

from facility_booking.config import settings
from facility_booking.schemas.pricing_schema import PromoKind, Promotion
from facility_booking.utils import round_money

logger = logging.getLogger(__name__)

PromoLookup = Callable[[str], Optional[Promotion]]


def normalize_code(code: str) -> str:
    return code.strip().upper()


def build_promo_table(promotions: Iterable[Promotion]) -> Mapping[str, Promotion]:
    """Index promotions by normalized code. Later duplicates win."""
    table = {normalize_code(p.code): p for p in promotions}
    return MappingProxyType(table)


def _promotions_from_settings() -> list[Promotion]:
    return [
        Promotion(code=code, kind=PromoKind(kind), value=value)
        for code, kind, value in settings.promotions.codes
    ]


DEFAULT_PROMOTIONS: Mapping[str, Promotion] = build_promo_table(_promotions_from_settings())


def table_lookup(table: Mapping[str, Promotion]) -> PromoLookup:
    """Wrap a promo table as a case-insensitive lookup callable."""

    def lookup(code: str) -> Optional[Promotion]:
        return table.get(normalize_code(code))

    return lookup


lookup_promotion: PromoLookup = table_lookup(DEFAULT_PROMOTIONS)


def discount_for(promotion: Promotion, base_price: Decimal) -> Decimal:
    """Discount amount a promotion grants on ``base_price``, rounded once."""
    if promotion.kind == PromoKind.PERCENT:
        return round_money(base_price * promotion.value / Decimal(100))
    return round_money(promotion.value)
