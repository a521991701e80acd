"""Request context logging for tracing operations across modules.

Provides a tenant- and request-aware logger that attaches both ids to
every log message, so a single booking attempt can be followed through
admission, pricing, persistence and notification scheduling.

Usage:
    from scheduling_engine.logging_context import get_request_logger, set_request_context

    set_request_context("tenant_acme", "REQ-abc123")
    logger = get_request_logger(__name__)
    logger.info("Booking created")  # → [tenant_acme/REQ-abc123] Booking created
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Optional

_tenant_id: ContextVar[str] = ContextVar("tenant_id", default="-")
_request_id: ContextVar[str] = ContextVar("request_id", default="NO_REQUEST_ID")


def set_request_context(tenant_id: str, request_id: Optional[str] = None) -> str:
    """Set the tenant and correlation ID for the current context.

    Returns the request ID in effect, generating one when not supplied.
    """
    request_id = request_id or f"REQ-{uuid.uuid4().hex[:8]}"
    _tenant_id.set(tenant_id)
    _request_id.set(request_id)
    return request_id


def get_request_id() -> str:
    """Retrieve the current correlation ID."""
    return _request_id.get()


def get_tenant_id() -> str:
    return _tenant_id.get()


class RequestContextFilter(logging.Filter):
    """Injects tenant_id and request_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.tenant_id = _tenant_id.get()  # type: ignore[attr-defined]
        record.request_id = _request_id.get()  # type: ignore[attr-defined]
        return True


def get_request_logger(name: str) -> logging.Logger:
    """Return a logger with the RequestContextFilter attached.

    The filter adds ``tenant_id`` and ``request_id`` to each record so
    formatters can include them in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, RequestContextFilter) for f in logger.filters):
        logger.addFilter(RequestContextFilter())
    return logger
