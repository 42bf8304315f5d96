# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Structured logging for the portal.

structlog renders key/value events as colored console lines during
development and as one JSON object per line elsewhere. Standard-library
loggers share the same stdout handler.

Credentials must never reach the logs: every event passes through
redact_secrets(), which masks password-like keys before rendering.

Example:
    >>> setup_logging(get_settings())
    >>> log = get_logger(__name__).bind(identity="alice@example.org")
    >>> log.info("provisioning_completed")
"""

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import EventDict, Processor

if TYPE_CHECKING:
    from student_portal.core.config.settings import Settings

REDACTED = "***"
SECRET_KEYS = frozenset({"password", "credential", "generated_credential", "token", "api_key"})

QUIET_LOGGERS = (
    "uvicorn.access",
    "httpx",
    "httpcore",
    "sqlalchemy.engine",
    "apscheduler",
    "asyncio",
)


def redact_secrets(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask values of password and token keys in an event."""
    for key in SECRET_KEYS.intersection(event_dict):
        if event_dict[key] is not None:
            event_dict[key] = REDACTED
    return event_dict


def _processors(settings: "Settings") -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        redact_secrets,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.is_development or settings.debug:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    else:
        processors.extend(
            [
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ]
        )
    return processors


def setup_logging(settings: "Settings") -> None:
    """Configure structlog and the standard-library root logger.

    Args:
        settings: Application settings; log_level, environment and debug
            are read.
    """
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    structlog.configure(
        processors=_processors(settings),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger("student_portal").setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Structured logger for a module, usually get_logger(__name__)."""
    return structlog.get_logger(name)


def bind_context(**values: Any) -> None:
    """Attach key/values to every event logged from the current context."""
    structlog.contextvars.bind_contextvars(**values)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
