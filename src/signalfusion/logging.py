"""Structured logging for analysis, position and backtest events.

Every module logs through ``get_logger(__name__)`` with snake_case event
names. Decimal context values reach the renderer as plain strings.
"""

import logging
import os
from decimal import Decimal
from typing import TextIO

import structlog

from signalfusion.config import AppSettings

_FORMATS = ("console", "json")


def _stringify_decimals(
    logger: object, method_name: str, event_dict: dict
) -> dict:
    for key, value in event_dict.items():
        if isinstance(value, Decimal):
            event_dict[key] = str(value)
    return event_dict


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def setup_logging(
    log_level: str = "INFO",
    log_format: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """Route structlog through the stdlib root logger.

    Args:
        log_level: Root level name; unknown names fall back to INFO.
        log_format: "json" or "console". When None, LOG_FORMAT is read from
            the environment, defaulting to console.
        stream: Destination for rendered lines (stderr when None).

    Raises:
        ValueError: If the format is neither json nor console.
    """
    chosen = (log_format or os.environ.get("LOG_FORMAT", "console")).lower()
    if chosen not in _FORMATS:
        raise ValueError(f"Unknown log format {chosen!r}, expected one of {_FORMATS}")

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        _stringify_decimals,
        structlog.processors.format_exc_info,
    ]

    # Loggers bound before reconfiguration keep the old chain when cached.
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(chosen),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def setup_logging_from_settings(settings: AppSettings, stream: TextIO | None = None) -> None:
    """Apply ``AppSettings.log_level`` and ``AppSettings.log_format``."""
    setup_logging(settings.log_level, settings.log_format, stream=stream)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger with the given name."""
    return structlog.get_logger(name)
