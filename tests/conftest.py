"""Shared test fixtures and helpers."""

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Optional

import pytest

from facility_booking.engine.pricing import calculate_price
from facility_booking.schemas.booking_schema import (
    Booking,
    BookingRequest,
    BookingStatus,
    PaymentStatus,
)
from facility_booking.schemas.facility_schema import FacilityConfig, PricingConfig
from facility_booking.schemas.slot_schema import OccupiedSlot, SlotStatus, TimeInterval

FACILITY_ID = "court-1"
TENANT_ID = "tenant-1"
DAY = date(2030, 6, 1)
NOW = datetime(2030, 5, 31, 12, 0, tzinfo=timezone.utc)


def at(hour: int, minute: int = 0, day: date = DAY) -> datetime:
    """UTC instant on ``day``."""
    return datetime.combine(day, time(hour, minute), tzinfo=timezone.utc)


def make_interval(
    start_hour: int,
    end_hour: int,
    start_minute: int = 0,
    end_minute: int = 0,
    day: date = DAY,
) -> TimeInterval:
    return TimeInterval(at(start_hour, start_minute, day), at(end_hour, end_minute, day))


def make_facility(
    facility_id: str = FACILITY_ID,
    open_time: time = time(8, 0),
    close_time: time = time(22, 0),
    slot_duration_minutes: int = 60,
    price_per_hour: str = "150.00",
    currency: str = "SAR",
    tenant_id: Optional[str] = TENANT_ID,
    timezone_name: str = "UTC",
) -> FacilityConfig:
    """Helper to create a FacilityConfig with sensible defaults."""
    return FacilityConfig(
        id=facility_id,
        name="Court One",
        open_time=open_time,
        close_time=close_time,
        slot_duration_minutes=slot_duration_minutes,
        pricing=PricingConfig(base_price_per_hour=Decimal(price_per_hour), currency=currency),
        timezone=timezone_name,
        tenant_id=tenant_id,
    )


def make_slot(
    slot_id: str,
    interval: TimeInterval,
    facility_id: str = FACILITY_ID,
    status: SlotStatus = SlotStatus.BOOKED,
) -> OccupiedSlot:
    return OccupiedSlot(
        id=slot_id,
        facility_id=facility_id,
        interval=interval,
        status=status,
        booking_reference=f"REF-{slot_id}",
    )


def make_request(
    interval: TimeInterval,
    facility_id: str = FACILITY_ID,
    promo_code: Optional[str] = None,
    status: BookingStatus = BookingStatus.CONFIRMED,
) -> BookingRequest:
    return BookingRequest(
        facility_id=facility_id,
        interval=interval,
        promo_code=promo_code,
        customer_name="Sara",
        customer_phone="+966500000000",
        status=status,
    )


def make_booking(
    booking_id: str = "b-1",
    status: BookingStatus = BookingStatus.CONFIRMED,
    payment_status: PaymentStatus = PaymentStatus.PENDING,
    interval: Optional[TimeInterval] = None,
    hold_until: Optional[datetime] = None,
    tenant_id: str = TENANT_ID,
    facility_id: str = FACILITY_ID,
    created_by_user_id: Optional[str] = None,
) -> Booking:
    """Helper to create a Booking. PENDING bookings get a hold 15 minutes after NOW."""
    interval = interval or make_interval(10, 11)
    if status == BookingStatus.PENDING and hold_until is None:
        hold_until = NOW + timedelta(minutes=15)
    price = calculate_price(interval, make_facility().pricing)
    return Booking(
        id=booking_id,
        tenant_id=tenant_id,
        facility_id=facility_id,
        interval=interval,
        status=status,
        payment_status=payment_status,
        hold_until=hold_until,
        price_breakdown=price,
        total_amount=price.total,
        currency=price.currency,
        booking_reference=f"KH-2030-{booking_id.upper()}",
        customer_name="Sara",
        customer_phone="+966500000000",
        created_by_user_id=created_by_user_id,
    )


@pytest.fixture
def facility():
    return make_facility()


@pytest.fixture
def pricing(facility):
    return facility.pricing
