"""Request and tenant correlation context for logging.

Provides a logger that attaches the current request id and tenant id to
every record, so a single booking request can be traced from the service
layer down into the engine.

Usage:
    from facility_booking.logging_context import get_request_logger, set_request_context

    set_request_context("REQ-abc123", tenant_id="tenant-1")
    logger = get_request_logger(__name__)
    logger.info("Previewing booking")  # record.request_id == "REQ-abc123"
"""

import logging
from contextvars import ContextVar
from typing import Optional

_request_id: ContextVar[str] = ContextVar("request_id", default="NO_REQUEST_ID")
_tenant_id: ContextVar[str] = ContextVar("tenant_id", default="NO_TENANT")


def set_request_context(request_id: str, tenant_id: Optional[str] = None) -> None:
    """Set the correlation ids for the current async context."""
    _request_id.set(request_id)
    if tenant_id is not None:
        _tenant_id.set(tenant_id)


def get_request_id() -> str:
    return _request_id.get()


def get_tenant_id() -> str:
    return _tenant_id.get()


class RequestContextFilter(logging.Filter):
    """Injects request_id and tenant_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()  # type: ignore[attr-defined]
        record.tenant_id = _tenant_id.get()  # type: ignore[attr-defined]
        return True


def get_request_logger(name: str) -> logging.Logger:
    """Return a logger with the RequestContextFilter attached.

    Formatters can then include ``%(request_id)s`` and ``%(tenant_id)s``.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, RequestContextFilter) for f in logger.filters):
        logger.addFilter(RequestContextFilter())
    return logger
