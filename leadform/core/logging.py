from __future__ import annotations

import logging
import sys
from typing import Optional

import structlog

from leadform.core.config import settings


def configure_structlog(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    level_name = (log_level or settings.log_level).upper()
    level = getattr(logging, level_name, logging.INFO)
    fmt = log_format or settings.log_format

    timestamper = structlog.processors.TimeStamper(fmt="iso")
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        timestamper,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if fmt == "console":
        processors.append(structlog.dev.ConsoleRenderer())
    elif fmt == "plain":
        processors.append(structlog.processors.KeyValueRenderer(key_order=["timestamp", "level", "event"]))
    else:
        processors.append(structlog.processors.JSONRenderer())

    if settings.log_file:
        logging.basicConfig(
            level=level,
            format="%(message)s",
            handlers=[logging.StreamHandler(sys.stderr), logging.FileHandler(settings.log_file)],
        )
    else:
        logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_structlog_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name) if name else structlog.get_logger()


def bind_submission_id(submission_id: Optional[str] = None) -> None:
    """Set submission ID in structlog context."""
    if submission_id:
        structlog.contextvars.bind_contextvars(submission_id=submission_id)
    else:
        structlog.contextvars.unbind_contextvars("submission_id")
