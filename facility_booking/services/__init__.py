from facility_booking.services.booking_service import BookingService
from facility_booking.services.notifications import (
    LoggingNotifier,
    Notifier,
    Recipient,
    dispatch_notifications,
)
from facility_booking.services.store import BookingStore, InMemoryBookingStore

__all__ = [
    "BookingService",
    "BookingStore",
    "InMemoryBookingStore",
    "LoggingNotifier",
    "Notifier",
    "Recipient",
    "dispatch_notifications",
]
