"""Structured logging setup."""

import logging
import sys
from pathlib import Path
from typing import Optional

import structlog
from textual.logging import TextualHandler


def configure_logging(
    level: str = "INFO",
    *,
    log_file: Optional[Path] = None,
    tui: bool = False,
) -> None:
    """Configure structlog on top of the stdlib logging module.

    While the TUI is running, log records are routed to the Textual devtools
    console unless a log file was requested; writing to stderr would corrupt
    the screen.
    """
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
    elif tui:
        handler = TextualHandler()
    else:
        handler = logging.StreamHandler(sys.stderr)

    logging.basicConfig(
        format="%(message)s",
        level=level.upper(),
        handlers=[handler],
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=log_file is None and not tui),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
