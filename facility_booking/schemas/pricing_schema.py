"""Price breakdown and promotion models."""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PromoKind(str, Enum):
    PERCENT = "percent"
    FIXED = "fixed"


class Promotion(BaseModel):
    """A promo code and the discount it grants."""

    model_config = ConfigDict(frozen=True)

    code: str
    kind: PromoKind
    value: Decimal = Field(ge=0)


class PriceBreakdown(BaseModel):
    """Deterministic price for one interval.

    ``total == max(0, base_price - discount)``.
    """

    model_config = ConfigDict(frozen=True)

    duration_hours: Decimal
    base_price: Decimal
    discount: Decimal = Decimal("0.00")
    total: Decimal
    currency: str
    promo_code: Optional[str] = None
