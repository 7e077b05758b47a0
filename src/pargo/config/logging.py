"""
Logging Configuration
=====================

Structured logging with structlog on top of the standard library handlers.
Library modules only call ``get_logger``; the command line calls
``setup_logging`` once at start-up.
"""

import logging
import sys
from typing import List, Optional

import structlog
from structlog.types import Processor

from .settings import Settings, get_settings


def configure_structlog(settings: Optional[Settings] = None) -> None:
    """Route structlog through the standard library loggers."""
    settings = settings or get_settings()

    processors: List[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Setup application logging configuration."""
    settings = settings or get_settings()
    configure_structlog(settings)

    # stdout is reserved for command output
    logging.basicConfig(
        format="%(message)s", stream=sys.stderr, level=settings.log_level, force=True
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


# library use before setup_logging still goes through stdlib logging
if not structlog.is_configured():
    configure_structlog()
