"""Structured logging configuration using structlog."""

import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator

import structlog
from structlog.typing import EventDict, Processor

from taskboard import __version__
from taskboard.core.config import get_settings

settings = get_settings()

# Keys never written to log output
REDACTED_KEYS = frozenset({"password", "secret", "token", "refresh_token", "access_token"})


def add_app_context(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add application context to log entries."""
    event_dict["app"] = settings.app_name
    event_dict["env"] = settings.app_env
    event_dict["version"] = __version__
    return event_dict


def redact_secrets(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask credential values accidentally passed as log context."""
    for key in REDACTED_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def setup_logging() -> None:
    """Configure structured logging for the application."""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_context,
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.debug:
        # Development: colorized console output
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True),
        ]
    else:
        # Production: JSON output
        processors = shared_processors + [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,  # type: ignore
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


@contextmanager
def bound_context(**values: Any) -> Iterator[None]:
    """Bind key/value pairs to every log entry emitted inside the block.

    Used by background tasks so that all entries of one job run carry the
    job identifiers without threading them through every call.
    """
    with structlog.contextvars.bound_contextvars(**values):
        yield


# Initialize logging on module import
setup_logging()
