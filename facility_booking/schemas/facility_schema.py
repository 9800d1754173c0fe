"""Facility and pricing configuration models."""

from datetime import time
from decimal import Decimal
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from facility_booking.config import settings


class PricingConfig(BaseModel):
    """Hourly pricing for a facility."""

    model_config = ConfigDict(frozen=True)

    base_price_per_hour: Decimal = Field(ge=0)
    currency: str = settings.booking.default_currency

    @field_validator("currency")
    @classmethod
    def _currency_code(cls, value: str) -> str:
        value = value.strip().upper()
        if len(value) != 3 or not value.isalpha():
            raise ValueError(f"Currency must be a 3-letter ISO-4217 code, got {value!r}")
        return value


class FacilityConfig(BaseModel):
    """Read-only facility configuration loaded by the caller for one request.

    ``open_time`` and ``close_time`` are wall-clock times in ``timezone``.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    open_time: time
    close_time: time
    slot_duration_minutes: int = Field(
        default=settings.booking.default_slot_duration_minutes, gt=0
    )
    pricing: PricingConfig
    timezone: str = "UTC"
    tenant_id: Optional[str] = None

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {value!r}") from None
        return value

    @model_validator(mode="after")
    def _hours_ordered(self) -> "FacilityConfig":
        if self.close_time <= self.open_time:
            raise ValueError(
                f"close_time {self.close_time} must be after open_time {self.open_time}"
            )
        return self

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def format_hours(self) -> str:
        return f"{self.open_time.strftime('%H:%M')}-{self.close_time.strftime('%H:%M')}"
