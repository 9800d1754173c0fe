"""
Centralized configuration with environment variable overrides.

Hold windows, alternative-slot search bounds, promo codes and other
engine tunables live here. Engine and service logic read them from the
``settings`` singleton instead of hardcoding literals.
"""

import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    """Parse a boolean flag ("true"/"false", "1"/"0", "yes"/"no")."""
    raw = os.getenv(env_var, default).strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off", ""):
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


def _safe_decimal(raw: str, label: str) -> Decimal:
    try:
        return Decimal(raw)
    except (InvalidOperation, TypeError):
        raise ValueError(f"Invalid decimal for {label}: {raw!r}") from None


def _parse_promo_codes(raw: str) -> tuple[tuple[str, str, Decimal], ...]:
    """Parse ``CODE:percent:10,CODE2:fixed:25`` into (code, kind, value) triples."""
    entries = []
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        parts = [p.strip() for p in chunk.split(":")]
        if len(parts) != 3 or not parts[0]:
            raise ValueError(f"Invalid PROMO_CODES entry: {chunk!r}")
        code, kind, value = parts
        if kind.lower() not in ("percent", "fixed"):
            raise ValueError(f"Invalid promo kind for {code}: {kind!r}")
        entries.append((code.upper(), kind.lower(), _safe_decimal(value, f"PROMO_CODES[{code}]")))
    return tuple(entries)


@dataclass(frozen=True)
class LifecycleConfig:
    """Booking lifecycle rules: hold window and cancellation policy."""

    hold_minutes: int = _safe_int("HOLD_MINUTES", "15")
    min_cancellation_reason_length: int = _safe_int("MIN_CANCELLATION_REASON_LENGTH", "5")
    auto_cancel_reason: str = os.getenv("AUTO_CANCEL_REASON", "Auto-cancelled: hold expired")


@dataclass(frozen=True)
class SearchConfig:
    """Bounds for the suggested-alternatives search."""

    alternative_count: int = _safe_int("ALTERNATIVE_COUNT", "3")
    # 0 means step by the facility's own slot duration
    alternative_step_minutes: int = _safe_int("ALTERNATIVE_STEP_MINUTES", "0")


@dataclass(frozen=True)
class BookingConfig:
    """Facility defaults and request validation switches."""

    default_currency: str = os.getenv("DEFAULT_CURRENCY", "SAR")
    default_slot_duration_minutes: int = _safe_int("DEFAULT_SLOT_DURATION_MINUTES", "60")
    enforce_slot_granularity: bool = _safe_bool("ENFORCE_SLOT_GRANULARITY", "false")
    reference_prefix: str = os.getenv("BOOKING_REFERENCE_PREFIX", "KH")


@dataclass(frozen=True)
class PromoConfig:
    """Promo code table as (code, kind, value) triples."""

    codes: tuple[tuple[str, str, Decimal], ...] = _parse_promo_codes(
        os.getenv("PROMO_CODES", "")
    )


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    lifecycle: LifecycleConfig = field(default_factory=LifecycleConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    booking: BookingConfig = field(default_factory=BookingConfig)
    promotions: PromoConfig = field(default_factory=PromoConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    service_name: str = os.getenv("SERVICE_NAME", "facility-booking")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.lifecycle.hold_minutes < 1:
        raise ValueError(
            f"HOLD_MINUTES must be >= 1, got {config.lifecycle.hold_minutes}"
        )
    if config.lifecycle.min_cancellation_reason_length < 1:
        raise ValueError(
            "MIN_CANCELLATION_REASON_LENGTH must be >= 1, "
            f"got {config.lifecycle.min_cancellation_reason_length}"
        )
    if not config.lifecycle.auto_cancel_reason.strip():
        raise ValueError("AUTO_CANCEL_REASON must not be empty")
    if config.search.alternative_count < 0:
        raise ValueError(
            f"ALTERNATIVE_COUNT must be >= 0, got {config.search.alternative_count}"
        )
    if config.search.alternative_step_minutes < 0:
        raise ValueError(
            "ALTERNATIVE_STEP_MINUTES must be >= 0, "
            f"got {config.search.alternative_step_minutes}"
        )
    if config.booking.default_slot_duration_minutes < 1:
        raise ValueError(
            "DEFAULT_SLOT_DURATION_MINUTES must be >= 1, "
            f"got {config.booking.default_slot_duration_minutes}"
        )
    currency = config.booking.default_currency
    if len(currency) != 3 or not currency.isalpha():
        raise ValueError(f"DEFAULT_CURRENCY must be an ISO-4217 code, got {currency!r}")

    for code, kind, value in config.promotions.codes:
        if value < 0:
            raise ValueError(f"Promo {code} must have a non-negative value, got {value}")
        if kind == "percent" and value > 100:
            raise ValueError(f"Promo {code} percent must be <= 100, got {value}")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.service_name)
    return config


# Singleton instance
settings = load_config()
