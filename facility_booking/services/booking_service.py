"""
Reference caller for the booking engine.

Pattern: store -> engine -> store -> notifier.
  1. Load the facility and the slots currently occupying it.
  2. Let the engine decide bookability, price, and status changes.
  3. Persist the result while holding the facility's lock.
  4. Hand notification events to the notifier in the background.

The per-facility lock serializes "detect conflict -> persist" within this
process; a multi-process deployment needs the same guarantee from the
database transaction.
"""

import asyncio
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Callable, Optional

from facility_booking.engine.intervals import local_date, operating_window
from facility_booking.engine.lifecycle import (
    apply_status_change,
    expire_hold,
    is_hold_expired,
    sweep_expired_holds,
)
from facility_booking.engine.preview import preview_booking, propose_booking
from facility_booking.errors import AccessDeniedError, InvalidTransitionError, NotFoundError
from facility_booking.logging_context import get_request_logger
from facility_booking.schemas.booking_schema import (
    Booking,
    BookingDecision,
    BookingPreviewResult,
    BookingRequest,
    BookingStatus,
    HoldSweepResult,
    StatusChange,
)
from facility_booking.schemas.facility_schema import FacilityConfig
from facility_booking.schemas.slot_schema import OccupiedSlot, TimeInterval
from facility_booking.services.notifications import (
    LoggingNotifier,
    Notifier,
    booking_cancelled_event,
    booking_created_events,
    dispatch_notifications,
)
from facility_booking.services.store import BookingStore

logger = get_request_logger(__name__)

ACCESS_DENIED_MESSAGE = "Access denied: You do not have permission to access this resource."
RESOURCE_NOT_FOUND_MESSAGE = "Resource not found"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookingService:
    """Tenant-scoped booking operations over a BookingStore."""

    def __init__(
        self,
        store: BookingStore,
        notifier: Optional[Notifier] = None,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
    ) -> None:
        self._store = store
        self._notifier = notifier or LoggingNotifier()
        self._clock = clock
        self._id_factory = id_factory
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._notification_tasks: set[asyncio.Task] = set()

    # ------------------------------------------------------------------ #
    # Scoping helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _require(value: Optional[str]) -> str:
        if not value or not value.strip():
            raise AccessDeniedError(ACCESS_DENIED_MESSAGE)
        return value

    async def _facility_for_tenant(self, facility_id: str, tenant_id: str) -> FacilityConfig:
        facility = await self._store.get_facility(facility_id)
        if facility is None:
            raise NotFoundError(RESOURCE_NOT_FOUND_MESSAGE)
        if facility.tenant_id != tenant_id:
            raise AccessDeniedError(ACCESS_DENIED_MESSAGE)
        return facility

    async def _booking_for_tenant(self, booking_id: str, tenant_id: str) -> Booking:
        booking = await self._store.get_booking(booking_id)
        if booking is None:
            raise NotFoundError(RESOURCE_NOT_FOUND_MESSAGE)
        if booking.tenant_id != tenant_id:
            raise AccessDeniedError(ACCESS_DENIED_MESSAGE)
        return booking

    async def _occupied_around(
        self, facility: FacilityConfig, interval: TimeInterval, now: datetime
    ) -> list[OccupiedSlot]:
        """Occupying slots across the requested day, so alternatives see them too."""
        day = operating_window(facility, local_date(facility, interval.start))
        window = TimeInterval(min(day.start, interval.start), max(day.end, interval.end))
        return await self._store.list_occupying_slots(facility.id, window, now)

    def _notify(self, events: list) -> None:
        task = dispatch_notifications(self._notifier, events)
        if task is not None:
            self._notification_tasks.add(task)
            task.add_done_callback(self._notification_tasks.discard)

    async def drain_notifications(self) -> None:
        """Wait for in-flight notification tasks (shutdown and tests)."""
        if self._notification_tasks:
            await asyncio.gather(*list(self._notification_tasks))

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #

    async def list_bookings(
        self, tenant_id: str, facility_id: Optional[str] = None
    ) -> list[Booking]:
        """Sweep the tenant's expired holds, then list its bookings newest first."""
        tenant_id = self._require(tenant_id)
        await self.sweep_expired_holds(tenant_id)
        if facility_id:
            await self._facility_for_tenant(facility_id, tenant_id)
        return await self._store.list_bookings(tenant_id, facility_id)

    async def preview(self, tenant_id: str, request: BookingRequest) -> BookingPreviewResult:
        tenant_id = self._require(tenant_id)
        now = self._clock()
        facility = await self._facility_for_tenant(request.facility_id, tenant_id)
        occupied = await self._occupied_around(facility, request.interval, now)
        return preview_booking(request, facility, occupied, now=now)

    async def create_booking(
        self, tenant_id: str, user_id: str, request: BookingRequest
    ) -> BookingDecision:
        """
        Check, price and persist a new booking.

        Returns a rejected decision on conflict. Notifications go out only
        after the booking is saved, and their failures never surface here.
        """
        tenant_id = self._require(tenant_id)
        user_id = self._require(user_id)
        facility = await self._facility_for_tenant(request.facility_id, tenant_id)

        async with self._locks[facility.id]:
            now = self._clock()
            occupied = await self._occupied_around(facility, request.interval, now)
            sequence = await self._store.count_bookings() + 1
            decision = propose_booking(
                request,
                facility,
                occupied,
                now=now,
                booking_id=self._id_factory(),
                tenant_id=tenant_id,
                sequence_number=sequence,
                created_by_user_id=user_id,
            )
            if not decision.accepted:
                return decision
            saved = await self._store.save_booking(decision.booking)

        logger.info("Booking %s created on %s", saved.booking_reference, facility.id)
        creator = await self._store.get_user(user_id)
        managers = await self._store.list_managers(tenant_id)
        self._notify(booking_created_events(saved, facility, creator, managers))
        return decision.model_copy(update={"booking": saved})

    async def update_status(
        self, tenant_id: str, booking_id: str, change: StatusChange
    ) -> Booking:
        """
        Apply a status or payment change under the facility's lock.

        A hold that has already expired is swept to CANCELLED first, so it
        can never be confirmed after its slot was released to someone else.
        """
        tenant_id = self._require(tenant_id)
        booking = await self._booking_for_tenant(booking_id, tenant_id)

        async with self._locks[booking.facility_id]:
            now = self._clock()
            booking = await self._booking_for_tenant(booking_id, tenant_id)
            if is_hold_expired(booking, now):
                booking = await self._store.save_booking(expire_hold(booking))
                logger.info("Booking %s hold expired before status change", booking.id)
                if change.status not in (None, BookingStatus.CANCELLED):
                    raise InvalidTransitionError(
                        f"Hold on booking {booking.id} expired; it was cancelled automatically."
                    )
            updated = apply_status_change(booking, change, now)
            saved = await self._store.save_booking(updated)

        if saved.status == BookingStatus.CANCELLED and booking.status != BookingStatus.CANCELLED:
            creator = (
                await self._store.get_user(saved.created_by_user_id)
                if saved.created_by_user_id else None
            )
            if creator is not None:
                facility = await self._store.get_facility(saved.facility_id)
                name = facility.name if facility is not None else "Unknown Facility"
                self._notify([booking_cancelled_event(saved, name, creator)])
        return saved

    async def sweep_expired_holds(self, tenant_id: str) -> HoldSweepResult:
        """
        Cancel the tenant's expired holds. Safe to run repeatedly.

        Each facility's holds are re-read and saved under that facility's
        lock, the same one that guards booking creation and status changes.
        """
        tenant_id = self._require(tenant_id)
        now = self._clock()
        candidates = await self._store.list_bookings(tenant_id)
        facility_ids = sorted({b.facility_id for b in candidates if is_hold_expired(b, now)})

        cancelled: list[Booking] = []
        for facility_id in facility_ids:
            async with self._locks[facility_id]:
                current = await self._store.list_bookings(tenant_id, facility_id)
                result = sweep_expired_holds(current, now, tenant_id)
                if result.cancelled:
                    await self._store.save_bookings(result.cancelled)
                cancelled.extend(result.cancelled)
        return HoldSweepResult(tenant_id=tenant_id, swept_at=now, cancelled=cancelled)
