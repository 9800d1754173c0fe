"""
Booking notification events and best-effort dispatch.

Events are plain payloads; delivery (email, SMS, push) belongs to a
Notifier implementation. Dispatch happens only after a booking change has
been persisted, runs as a background task, and never lets a delivery
failure reach the booking operation: failures are logged and dropped.
"""

import asyncio
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Literal, Optional, Protocol, Union

from pydantic import BaseModel, ConfigDict

from facility_booking.logging_context import get_request_logger
from facility_booking.schemas.booking_schema import Booking
from facility_booking.schemas.facility_schema import FacilityConfig

logger = get_request_logger(__name__)


class Recipient(BaseModel):
    """A user who can receive booking notifications."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    email: str
    name: str = ""


class BookingCreatedEvent(BaseModel):
    """Confirmation sent to the user who created a booking."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["booking_created"] = "booking_created"
    recipient_email: str
    customer_name: str
    customer_phone: str
    booking_reference: str
    facility_name: str
    start_time: datetime
    end_time: datetime
    total_amount: Decimal
    currency: str


class NewBookingAlertEvent(BaseModel):
    """Alert sent to tenant managers when someone else books."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["new_booking_alert"] = "new_booking_alert"
    manager_email: str
    manager_name: str
    customer_name: str
    customer_phone: str
    booking_reference: str
    facility_name: str
    start_time: datetime
    end_time: datetime
    total_amount: Decimal
    currency: str


class BookingCancelledEvent(BaseModel):
    """Cancellation notice sent to the booking's creator."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["booking_cancelled"] = "booking_cancelled"
    recipient_email: str
    customer_name: str
    booking_reference: str
    facility_name: str
    start_time: datetime
    end_time: datetime
    reason: str


NotificationEvent = Union[BookingCreatedEvent, NewBookingAlertEvent, BookingCancelledEvent]


class Notifier(Protocol):
    """Delivers one notification event. May raise; callers suppress failures."""

    async def send(self, event: NotificationEvent) -> None: ...


class LoggingNotifier:
    """Notifier that only logs events. Default when no delivery channel is wired."""

    def __init__(self) -> None:
        self.sent: list[NotificationEvent] = []

    async def send(self, event: NotificationEvent) -> None:
        self.sent.append(event)
        logger.info("Notification %s for booking %s", event.kind, event.booking_reference)


def booking_created_events(
    booking: Booking,
    facility: FacilityConfig,
    creator: Optional[Recipient],
    managers: Iterable[Recipient] = (),
) -> list[NotificationEvent]:
    """Confirmation for the creator plus an alert for every other manager."""
    reference = booking.booking_reference or booking.id
    events: list[NotificationEvent] = []
    if creator is not None:
        events.append(BookingCreatedEvent(
            recipient_email=creator.email,
            customer_name=booking.customer_name,
            customer_phone=booking.customer_phone,
            booking_reference=reference,
            facility_name=facility.name,
            start_time=booking.interval.start,
            end_time=booking.interval.end,
            total_amount=booking.total_amount,
            currency=booking.currency,
        ))
    for manager in managers:
        if creator is not None and manager.user_id == creator.user_id:
            continue
        events.append(NewBookingAlertEvent(
            manager_email=manager.email,
            manager_name=manager.name,
            customer_name=booking.customer_name,
            customer_phone=booking.customer_phone,
            booking_reference=reference,
            facility_name=facility.name,
            start_time=booking.interval.start,
            end_time=booking.interval.end,
            total_amount=booking.total_amount,
            currency=booking.currency,
        ))
    return events


def booking_cancelled_event(
    booking: Booking, facility_name: str, creator: Recipient
) -> BookingCancelledEvent:
    return BookingCancelledEvent(
        recipient_email=creator.email,
        customer_name=booking.customer_name,
        booking_reference=booking.booking_reference or booking.id,
        facility_name=facility_name,
        start_time=booking.interval.start,
        end_time=booking.interval.end,
        reason=booking.cancellation_reason or "No reason provided",
    )


async def deliver_all(notifier: Notifier, events: Iterable[NotificationEvent]) -> int:
    """Send each event; log and skip failures. Returns the number delivered."""
    delivered = 0
    for event in events:
        try:
            await notifier.send(event)
            delivered += 1
        except Exception:
            logger.exception(
                "Failed to send %s notification for %s", event.kind, event.booking_reference,
            )
    return delivered


def dispatch_notifications(
    notifier: Notifier, events: Iterable[NotificationEvent]
) -> Optional["asyncio.Task[int]"]:
    """Schedule delivery without waiting for it. Requires a running event loop."""
    events = list(events)
    if not events:
        return None
    return asyncio.get_running_loop().create_task(deliver_all(notifier, events))
