"""
Logging configuration for cloud-rename.

Provides centralized logging configuration with:
- Log level from environment (LOG_LEVEL / DEBUG)
- Console and rotating file handlers
- Batch start/end summaries and per-item operation lines

Library modules only call ``logging.getLogger(__name__)`` and the batch
helpers. ``setup_logging``, ``get_logger`` and ``initialize_logging`` are the
application-side entry points: a program embedding the engine calls one of
them once at startup to attach handlers.
"""

from datetime import datetime
import logging
import logging.handlers
import os
from pathlib import Path
import sys
from typing import Any

# -------------------- Configuration --------------------


LOG_DIR = Path.home() / ".cache" / "cloud-rename" / "logs"

CONSOLE_FORMAT = "%(name)s %(levelname)s: %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Errors listed in a batch summary before truncating
MAX_SUMMARY_ERRORS = 10


# -------------------- Global State --------------------


_loggers_configured: set[str] = set()


# -------------------- Utility Functions --------------------


def get_log_level() -> int:
    """
    Get the current log level from environment configuration.

    Checks LOG_LEVEL environment variable first, then DEBUG flag.

    Returns:
        Logging level constant (logging.DEBUG, logging.INFO, etc.)
    """
    level_str = os.getenv("LOG_LEVEL", "").upper()

    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }

    if level_str in level_map:
        return level_map[level_str]

    if os.getenv("DEBUG", "").lower() in ("true", "1", "yes"):
        return logging.DEBUG

    return logging.INFO


def get_log_file_path() -> Path:
    """Path of today's log file; creates the log directory."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    today = datetime.now().strftime("%Y-%m-%d")
    return LOG_DIR / f"cloud-rename-{today}.log"


# -------------------- Setup Functions --------------------


def setup_logging(
    name: str,
    level: int | None = None,
    console: bool = True,
    file: bool = False,
) -> logging.Logger:
    """
    Setup logging for a module with consistent formatting.

    Args:
        name: Logger name (usually __name__)
        level: Log level (defaults to get_log_level())
        console: Add console handler
        file: Add rotating file handler under LOG_DIR

    Returns:
        Configured logger instance
    """
    if name in _loggers_configured:
        return logging.getLogger(name)

    logger = logging.getLogger(name)
    logger.setLevel(level or get_log_level())
    logger.handlers.clear()
    logger.propagate = False

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logger.level)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        logger.addHandler(console_handler)

    if file:
        file_handler = logging.handlers.RotatingFileHandler(
            get_log_file_path(),
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logger.level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, DATE_FORMAT))
        logger.addHandler(file_handler)

    _loggers_configured.add(name)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get or create a logger with standard configuration.

    Args:
        name: Logger name (use __name__)

    Returns:
        Configured logger instance
    """
    if name not in _loggers_configured:
        return setup_logging(name)
    return logging.getLogger(name)


def initialize_logging(level: int | None = None) -> None:
    """
    Configure the root logger for an application embedding the engine.

    Library modules only call ``logging.getLogger(__name__)``; this is meant
    to be called once at application startup.
    """
    resolved = level or get_log_level()

    root_logger = logging.getLogger()
    root_logger.setLevel(resolved)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(resolved)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root_logger.addHandler(console_handler)

    logging.getLogger(__name__).debug(
        f"Logging initialized. Level: {logging.getLevelName(resolved)}"
    )


# -------------------- Batch Logging --------------------


def log_task_start(logger: logging.Logger, task_name: str, **metadata: Any) -> None:
    """
    Log batch start with structured metadata.

    Args:
        logger: Logger instance
        task_name: Name of the batch
        **metadata: Additional metadata (totals, limits)
    """
    logger.info("=" * 60)
    logger.info(f"Task Started: {task_name}")
    logger.info(f"Start Time: {datetime.now().strftime(DATE_FORMAT)}")

    if metadata:
        for key, value in metadata.items():
            logger.info(f"  {key}: {value}")

    logger.info("=" * 60)


def log_task_end(
    logger: logging.Logger,
    task_name: str,
    items_processed: int = 0,
    errors: list[str] | None = None,
    **metadata: Any,
) -> None:
    """
    Log batch completion with summary statistics.

    Args:
        logger: Logger instance
        task_name: Name of the batch
        items_processed: Number of tasks that finished
        errors: Failure messages
        **metadata: Additional metadata
    """
    logger.info("=" * 60)
    logger.info(f"Task Finished: {task_name}")
    logger.info(f"Items Processed: {items_processed}")

    if errors:
        logger.warning(f"Errors Encountered: {len(errors)}")
        for i, error in enumerate(errors[:MAX_SUMMARY_ERRORS], 1):
            logger.warning(f"  {i}. {error}")
        if len(errors) > MAX_SUMMARY_ERRORS:
            logger.warning(f"  ... and {len(errors) - MAX_SUMMARY_ERRORS} more errors")

    if metadata:
        for key, value in metadata.items():
            logger.info(f"  {key}: {value}")

    logger.info("=" * 60)


def log_operation(
    logger: logging.Logger,
    operation: str,
    item_id: str,
    status: str,
    **details: Any,
) -> None:
    """
    Log an individual item operation with consistent format.

    Args:
        logger: Logger instance
        operation: Operation type (e.g., "rename")
        item_id: Remote item identifier
        status: success, error, or anything else (logged at debug)
        **details: Additional operation details
    """
    msg = f"[{operation.upper()}] {item_id} - {status}"

    if details:
        detail_str = ", ".join(f"{k}={v}" for k, v in details.items())
        msg = f"{msg} ({detail_str})"

    if status == "success":
        logger.info(msg)
    elif status == "error":
        logger.error(msg)
    else:
        logger.debug(msg)
