"""Structured logging configuration using structlog.

Every entry is rendered by one stdlib handler, so chatsync events, uvicorn
and SQLAlchemy output share a format (JSON by default, console when
LOG_JSON=false). Entries logged while a request is being served carry the
request's correlation fields:
- request_id: Correlation ID for request tracing
- path: Raw request path (never includes query string)
- method: HTTP method

Usage:
    from chatsync.logging import get_logger

    logger = get_logger(__name__)
    logger.info("store_rehydrated", store="app-ui", version=3)

Background persistence work (debounced flushes, hydration) runs outside any
request, so its log entries carry the store name as an explicit field instead.
"""

import logging
import sys
from collections.abc import Mapping
from contextvars import ContextVar
from types import MappingProxyType

import structlog

_EMPTY: Mapping[str, str] = MappingProxyType({})

# Correlation fields of the request being served, empty outside requests
_request_fields: ContextVar[Mapping[str, str]] = ContextVar("request_fields", default=_EMPTY)

# Third-party loggers that are only interesting when something is wrong
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "sqlalchemy.engine", "alembic")


def add_request_context(logger: logging.Logger, method_name: str, event_dict: dict) -> dict:
    """structlog processor copying the current request's fields into the event."""
    event_dict.update(_request_fields.get())
    return event_dict


def _shared_processors() -> list:
    return [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_request_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def configure_logging(json_format: bool = True, level: int | str = logging.INFO) -> None:
    """Route structlog and stdlib logging through a single stdout handler.

    Args:
        json_format: Render JSON lines when True, console output otherwise.
        level: Root log level, as a number or a name such as "DEBUG".
    """
    shared = _shared_processors()
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer = (
        structlog.processors.JSONRenderer() if json_format else structlog.dev.ConsoleRenderer()
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level.upper() if isinstance(level, str) else level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger, typically named after the calling module."""
    return structlog.get_logger(name)


def set_request_context(
    request_id: str | None,
    path: str | None = None,
    method: str | None = None,
) -> None:
    """Bind the correlation fields of the request being served.

    Fields passed as None (or empty) are left out of log entries entirely.
    """
    fields = {"request_id": request_id, "path": path, "method": method}
    _request_fields.set(MappingProxyType({k: v for k, v in fields.items() if v}))


def clear_request_context() -> None:
    """Drop all request fields at the end of a request."""
    _request_fields.set(_EMPTY)


def get_request_id() -> str | None:
    """Get the current request ID from context."""
    return _request_fields.get().get("request_id")
