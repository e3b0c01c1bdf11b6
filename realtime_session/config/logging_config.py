"""
Configure logging for the application.

This module provides a consistent logging configuration across the entire
library, ensuring log messages are formatted correctly and directed
to the appropriate outputs (console, file, etc.).
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, List, Optional

from realtime_session.config.constants import LOGGER_NAME
from realtime_session.config.models import LoggingConfig

# Log levels
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Log file configuration
LOG_DIR = Path(os.getenv("LOG_DIR", "logs"))
LOG_FILE = LOG_DIR / "realtime_session.log"
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5

COMPONENT_LOGGERS = (
    LOGGER_NAME,
    "connection_manager",
    "event_router",
    "transport",
    "completion",
    "image_generation",
)


def configure_logging(
    name: str = LOGGER_NAME,
    file_path: str = str(LOG_DIR),
    log_filename: str = "realtime_session.log",
    file_output: bool = True,
    console_output: bool = True,
    level: Optional[str] = None,
    log_format: str = LOG_FORMAT,
    max_bytes: int = MAX_LOG_SIZE,
    backup_count: int = BACKUP_COUNT,
) -> logging.Logger:
    """
    Configure a named logger with console and (optionally) rotating file handlers.

    Args:
        name: Logger name, usually the component name
        file_path: Directory for the log file
        log_filename: Name of the log file inside ``file_path``
        file_output: Whether to attach the rotating file handler
        console_output: Whether to attach the stdout handler
        level: Level name; defaults to the ``LOG_LEVEL`` environment variable
        log_format: Format string for both handlers
        max_bytes: Rotate the log file at this size
        backup_count: Number of rotated files to keep

    Returns:
        logging.Logger: The configured logger instance
    """
    global LOG_FILE
    log_dir = Path(file_path)
    LOG_FILE = log_dir / log_filename

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO))

    # Remove existing handlers if any
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(log_format)

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if file_output:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                LOG_FILE,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"Could not set up file logging: {e}")

    # Prevent log propagation to root logger
    logger.propagate = False

    logger.debug("Logging configured")
    return logger


def apply_logging_config(
    logging_config: LoggingConfig, names: Iterable[str] = COMPONENT_LOGGERS
) -> List[logging.Logger]:
    """Reconfigure the component loggers from a ``LoggingConfig``."""
    return [
        configure_logging(
            name,
            file_path=str(logging_config.log_dir),
            log_filename=logging_config.log_filename,
            file_output=logging_config.file_output,
            console_output=logging_config.console_output,
            level=logging_config.level.value,
            log_format=logging_config.format,
            max_bytes=logging_config.max_log_size,
            backup_count=logging_config.backup_count,
        )
        for name in names
    ]
