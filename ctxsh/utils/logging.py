"""Structured logging configuration for ctxsh.

Diagnostics go to stderr (human-readable) and optionally to a JSON log file,
so they never mix with command output on stdout.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

import structlog
from structlog.typing import Processor


def setup_logging(
    level: str = "WARNING",
    log_file: Optional[str] = None,
    console: bool = True,
    max_file_size: int = 1024 * 1024,  # 1MB
    backup_count: int = 3,
) -> None:
    """Configure structlog for ctxsh.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR).
        log_file: Path to log file. If None, file logging is disabled.
        console: Whether to output to stderr.
        max_file_size: Maximum size of log file before rotation.
        backup_count: Number of backup log files to keep.
    """
    log_level = getattr(logging, level.upper(), logging.WARNING)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ExtraAdder(),
    ]

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handlers: list[logging.Handler] = []

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
                foreign_pre_chain=shared_processors,
            )
        )
        handlers.append(console_handler)

    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=max_file_size,
            backupCount=backup_count,
        )
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
                foreign_pre_chain=shared_processors,
            )
        )
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    for handler in handlers:
        handler.setLevel(log_level)
        root_logger.addHandler(handler)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger for the given name.

    Args:
        name: Logger name, typically __name__ of the module.

    Returns:
        A bound structlog logger.
    """
    return structlog.get_logger(name)
