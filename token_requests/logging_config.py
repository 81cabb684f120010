"""
Structured logging configuration using structlog.

Every log line emitted while an event is being applied carries the event kind
and block number, bound through ``bind_event_context``. Rendering is JSON
lines unless ``LOG_FORMAT=console`` (or ``auto`` at DEBUG level).
"""

import logging
import sys
from typing import Any, List, Optional

import structlog

from .config import settings

# Context keys bound per event that are only meaningful when set
EVENT_CONTEXT_KEYS = ("block_number", "request_id")


def _drop_unset_event_context(_: Any, __: str, event_dict: structlog.types.EventDict) -> structlog.types.EventDict:
    for key in EVENT_CONTEXT_KEYS:
        if key in event_dict and event_dict[key] is None:
            del event_dict[key]
    return event_dict


def _renderer(level: int, log_format: str) -> structlog.types.Processor:
    log_format = log_format.lower()
    if log_format == "console" or (log_format == "auto" and level == logging.DEBUG):
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Route structlog and stdlib logging through one processor chain.

    Args:
        log_level: Override log level (default: from settings.log_level)
        log_format: ``json``, ``console`` or ``auto`` (default: settings.log_format)
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    renderer = _renderer(level, log_format or settings.log_format)

    shared_processors: List[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.ExtraAdder(),
        _drop_unset_event_context,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if isinstance(renderer, structlog.processors.JSONRenderer):
        shared_processors.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # stdlib loggers (logging.getLogger(__name__)) render through the same chain
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # transport loggers
    for name in ("uvicorn.access", "httpcore", "httpx"):
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_event_context(kind: str, block_number: Optional[int] = None, **extra: Any) -> None:
    """Bind the event being applied into the structlog context."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(event_kind=kind, block_number=block_number, **extra)


def clear_event_context() -> None:
    structlog.contextvars.clear_contextvars()
