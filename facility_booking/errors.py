"""
Exceptions raised by the booking engine and the reference service layer.

Conflicts are not errors: a conflicted request is described by a
ConflictResult or a preview with ``can_book=False``.
"""


class BookingEngineError(Exception):
    """Base exception for all booking engine errors."""


class InvalidInputError(BookingEngineError, ValueError):
    """Raised for malformed intervals, bad durations, or cancellation-reason misuse."""


class InvalidTransitionError(BookingEngineError):
    """Raised when a status change is not allowed from the current status."""


class PaymentBlocksCancellationError(BookingEngineError):
    """Raised when cancelling a booking that is paid or partially paid."""


class NotFoundError(BookingEngineError):
    """Raised by the service layer when a facility or booking does not exist."""


class AccessDeniedError(BookingEngineError):
    """Raised by the service layer when a resource belongs to another tenant."""
