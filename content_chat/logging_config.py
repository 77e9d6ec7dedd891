"""
Logging configuration for the content chat service.

Configures structlog on top of the standard library so that both
structlog loggers (key/value events) and plain ``logging`` loggers end up
on the same handler. Request IDs are carried through structlog's
contextvars.
"""

import logging
import sys
from typing import Any, Optional
from uuid import uuid4

import structlog

_configured: bool = False


def setup_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """
    Configure application logging.

    Safe to call more than once; only the first call has an effect.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Use JSON renderer (production) instead of console output
    """
    global _configured
    if _configured:
        return

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    renderer: Any
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    _configured = True


def reset_logging() -> None:
    """Reset logging configuration (used by tests)."""
    global _configured
    _configured = False
    structlog.reset_defaults()


def bind_request_id(request_id: Optional[str] = None) -> str:
    """
    Bind a request ID to the structlog context.

    Args:
        request_id: Incoming request ID, a new UUID is generated if None

    Returns:
        The request ID that was bound
    """
    request_id = request_id or str(uuid4())
    structlog.contextvars.bind_contextvars(request_id=request_id)
    return request_id


def clear_request_context() -> None:
    """Drop all request-scoped logging context."""
    structlog.contextvars.clear_contextvars()
