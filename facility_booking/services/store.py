"""
Persistence contract consumed by the booking service, plus an in-memory store.

In production this would be backed by the platform database; the
in-memory store is used by tests and the CLI.
"""

import logging
from datetime import datetime
from typing import Iterable, Optional, Protocol

from facility_booking.engine.intervals import overlaps
from facility_booking.engine.lifecycle import occupying_slots
from facility_booking.schemas.booking_schema import Booking
from facility_booking.schemas.facility_schema import FacilityConfig
from facility_booking.schemas.slot_schema import OccupiedSlot, TimeInterval
from facility_booking.services.notifications import Recipient

logger = logging.getLogger(__name__)


class BookingStore(Protocol):
    """What the booking service needs from persistence."""

    async def get_facility(self, facility_id: str) -> Optional[FacilityConfig]: ...

    async def get_booking(self, booking_id: str) -> Optional[Booking]: ...

    async def list_bookings(
        self, tenant_id: str, facility_id: Optional[str] = None
    ) -> list[Booking]: ...

    async def list_occupying_slots(
        self, facility_id: str, window: TimeInterval, now: datetime
    ) -> list[OccupiedSlot]: ...

    async def save_booking(self, booking: Booking) -> Booking: ...

    async def save_bookings(self, bookings: Iterable[Booking]) -> None: ...

    async def count_bookings(self) -> int: ...

    async def get_user(self, user_id: str) -> Optional[Recipient]: ...

    async def list_managers(self, tenant_id: str) -> list[Recipient]: ...


class InMemoryBookingStore:
    """Dict-backed BookingStore."""

    def __init__(self) -> None:
        self._facilities: dict[str, FacilityConfig] = {}
        self._bookings: dict[str, Booking] = {}
        self._users: dict[str, Recipient] = {}
        self._managers: dict[str, list[Recipient]] = {}
        self._occupied: list[OccupiedSlot] = []

    # ------------------------------------------------------------------ #
    # Seeding helpers
    # ------------------------------------------------------------------ #

    def add_facility(self, facility: FacilityConfig) -> None:
        self._facilities[facility.id] = facility

    def add_user(self, user: Recipient, manager_of: Optional[str] = None) -> None:
        self._users[user.user_id] = user
        if manager_of is not None:
            self._managers.setdefault(manager_of, []).append(user)

    def add_block(self, slot: OccupiedSlot) -> None:
        """Administrative block (BLOCKED / MAINTENANCE) not tied to a booking."""
        self._occupied.append(slot)

    # ------------------------------------------------------------------ #
    # BookingStore
    # ------------------------------------------------------------------ #

    async def get_facility(self, facility_id: str) -> Optional[FacilityConfig]:
        return self._facilities.get(facility_id)

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        return self._bookings.get(booking_id)

    async def list_bookings(
        self, tenant_id: str, facility_id: Optional[str] = None
    ) -> list[Booking]:
        bookings = [
            b for b in self._bookings.values()
            if b.tenant_id == tenant_id and (facility_id is None or b.facility_id == facility_id)
        ]
        return sorted(bookings, key=lambda b: b.interval.start, reverse=True)

    async def list_occupying_slots(
        self, facility_id: str, window: TimeInterval, now: datetime
    ) -> list[OccupiedSlot]:
        slots = occupying_slots(self._bookings.values(), now, facility_id=facility_id)
        slots.extend(s for s in self._occupied if s.facility_id == facility_id)
        return [s for s in slots if overlaps(s.interval, window)]

    async def save_booking(self, booking: Booking) -> Booking:
        self._bookings[booking.id] = booking
        logger.debug("Saved booking %s (%s)", booking.id, booking.status.value)
        return booking

    async def save_bookings(self, bookings: Iterable[Booking]) -> None:
        for booking in bookings:
            self._bookings[booking.id] = booking

    async def count_bookings(self) -> int:
        return len(self._bookings)

    async def get_user(self, user_id: str) -> Optional[Recipient]:
        return self._users.get(user_id)

    async def list_managers(self, tenant_id: str) -> list[Recipient]:
        return list(self._managers.get(tenant_id, []))
