"""
Structured logging configuration for cordova-android.

Uses structlog for structured, context-rich logging that supports both human-readable
console output and JSON format for CI environments. Lifecycle components report
progress through an explicitly constructed PlatformEvents sink instead of a
process-wide event bus.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from typing import TYPE_CHECKING

import structlog
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from .config import Config

EventListener = Callable[[str, str], None]

# Event name -> structlog method
_EVENT_LEVELS: dict[str, str] = {
    "log": "info",
    "warn": "warning",
    "verbose": "debug",
    "error": "error",
}


def setup_logging(config: Config | None = None) -> None:
    """Configure structured logging for the application.

    Args:
        config: Optional configuration. If None, uses INFO level.
    """
    log_level = config.log_level if config else "INFO"
    level = getattr(logging, log_level, logging.INFO)

    # Configure standard library logging
    console = Console(stderr=True)
    handler = RichHandler(
        console=console,
        show_path=False,
        rich_tracebacks=True,
        tracebacks_show_locals=log_level == "DEBUG",
    )

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
    )

    # Configure structlog
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if sys.stderr.isatty():
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True),
        ]
    else:
        processors = shared_processors + [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured bound logger
    """
    return structlog.get_logger(name)


class PlatformEvents:
    """Event sink handed to every lifecycle component.

    Emits the named events ``log``, ``warn``, ``verbose`` and ``error`` to a
    structlog logger and, when one is supplied, to an external listener
    (typically the orchestrator driving the platform).
    """

    def __init__(
        self,
        listener: EventListener | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """Initialize the sink.

        Args:
            listener: Optional callable receiving ``(event_name, message)``.
            logger: Logger used for console output; defaults to the
                ``cordova_android`` structlog logger.
        """
        self.listener = listener
        self.logger = logger or get_logger("cordova_android")

    def emit(self, event: str, message: str, **fields: object) -> None:
        """Emit a named event.

        Args:
            event: One of ``log``, ``warn``, ``verbose``, ``error``.
            message: Human-readable message.
            **fields: Structured context attached to the log entry.

        Raises:
            ValueError: If the event name is unknown.
        """
        method = _EVENT_LEVELS.get(event)
        if method is None:
            raise ValueError(f"Unknown event: {event}")
        getattr(self.logger, method)(message, **fields)
        if self.listener is not None:
            self.listener(event, message)

    def log(self, message: str, **fields: object) -> None:
        self.emit("log", message, **fields)

    def warn(self, message: str, **fields: object) -> None:
        self.emit("warn", message, **fields)

    def verbose(self, message: str, **fields: object) -> None:
        self.emit("verbose", message, **fields)

    def error(self, message: str, **fields: object) -> None:
        self.emit("error", message, **fields)
