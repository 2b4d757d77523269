"""Structured logging configuration for the event registry.

Uses structlog for structured, context-rich logging with
support for both console and JSON output formats.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from event_registry.config import RegistrySettings


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Path | None = None,
    colors: bool = True,
) -> None:
    """Configure structured logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Whether to output JSON format
        log_file: Optional file to log to
        colors: Whether to use colors in console output
    """
    logging.basicConfig(
        format="%(message)s",
        handlers=[_build_handler(log_file)],
        level=getattr(logging, level.upper()),
        force=True,
    )

    structlog.configure(
        processors=_build_processors(json_output, colors),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _build_handler(log_file: Path | None) -> logging.Handler:
    # Owned by logging; basicConfig(force=True) closes it when replaced.
    if log_file is None:
        return logging.StreamHandler(sys.stderr)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(log_file, mode="a", encoding="utf-8")


def _build_processors(json_output: bool, colors: bool) -> list[structlog.types.Processor]:
    processors: list[structlog.types.Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=colors))
    return processors


def configure_from_settings(
    settings: RegistrySettings,
    log_file: Path | None = None,
) -> None:
    """Configure logging from registry settings.

    Args:
        settings: Loaded registry settings
        log_file: Optional file to log to
    """
    configure_logging(
        level=settings.log_level,
        json_output=settings.log_json,
        log_file=log_file,
        colors=not settings.log_json,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Structured logger instance
    """
    return structlog.get_logger(name)
