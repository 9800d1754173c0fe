"""Time interval, occupied slot, and availability data models."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field

from facility_booking.errors import InvalidInputError
from facility_booking.utils import to_utc


@dataclass(frozen=True)
class TimeInterval:
    """Immutable half-open interval ``[start, end)`` of UTC instants."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        try:
            start, end = to_utc(self.start), to_utc(self.end)
        except ValueError as exc:
            raise InvalidInputError(str(exc)) from None
        if end <= start:
            raise InvalidInputError(
                f"Interval end must be after start: {start.isoformat()} >= {end.isoformat()}"
            )
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def shifted(self, delta: timedelta) -> "TimeInterval":
        """Return the same-length interval moved by ``delta``."""
        return TimeInterval(self.start + delta, self.end + delta)

    def format_range(self) -> str:
        return f"{self.start.isoformat()} - {self.end.isoformat()}"


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar dates."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise InvalidInputError(
                f"Date range end {self.end.isoformat()} is before start {self.start.isoformat()}"
            )

    def days(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)


class SlotStatus(str, Enum):
    """Why an interval blocks new bookings."""
    BOOKED = "BOOKED"
    BLOCKED = "BLOCKED"
    MAINTENANCE = "MAINTENANCE"


class AvailabilityStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    BOOKED = "BOOKED"


class OccupiedSlot(BaseModel):
    """An existing booking or administrative block, supplied by the caller."""

    model_config = ConfigDict(frozen=True)

    id: str
    facility_id: str
    interval: TimeInterval
    status: SlotStatus = SlotStatus.BOOKED
    booking_reference: Optional[str] = None
    notes: Optional[str] = None


class PricedTimeSlot(BaseModel):
    """A candidate or generated slot with its price."""

    model_config = ConfigDict(frozen=True)

    interval: TimeInterval
    price: Decimal
    currency: str
    status: AvailabilityStatus = AvailabilityStatus.AVAILABLE


class DailyAvailability(BaseModel):
    """Per-date availability summary for calendar month views."""

    model_config = ConfigDict(frozen=True)

    day: date
    total_slots: int
    available_slots: int
    occupancy_rate: Decimal
    is_fully_booked: bool
    lowest_price: Optional[Decimal] = None
    currency: str


class AvailabilityMap(BaseModel):
    """Facility availability over a date range."""

    model_config = ConfigDict(frozen=True)

    facility_id: str
    date_range: DateRange
    total_slots: int
    available_slots: list[PricedTimeSlot] = Field(default_factory=list)
    occupied_slots: list[OccupiedSlot] = Field(default_factory=list)
    occupancy_rate: Decimal = Decimal("0.00")
    slots: list[PricedTimeSlot] = Field(default_factory=list)
    available_count: int = 0
    booked_count: int = 0
    days: list[DailyAvailability] = Field(default_factory=list)
