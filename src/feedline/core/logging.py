"""
Feedline SDK - Logging Configuration
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

from .config import config_manager

# Log levels
LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL
}

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for console output"""

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'
    }

    def format(self, record):
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def setup_logging(
    log_level: Optional[str] = None,
    log_dir: Optional[str] = None,
    enable_console_logging: bool = True,
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5
) -> logging.Logger:
    """
    Configure the ``feedline`` logger hierarchy.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL);
            FEEDLINE_LOG_LEVEL when None
        log_dir: Directory for a rotating ``feedline.log``; no file logging when None
        enable_console_logging: Whether to log to stdout
        max_file_size: Maximum size of the log file before rotation
        backup_count: Number of rotated files to keep

    Returns:
        The configured package logger
    """
    if log_level is None:
        log_level = config_manager.get_log_level()
    level = LOG_LEVELS.get(log_level.upper(), logging.INFO)

    package_logger = logging.getLogger("feedline")
    package_logger.handlers.clear()
    package_logger.setLevel(level)

    if enable_console_logging:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(ColoredFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        package_logger.addHandler(console_handler)

    if log_dir is not None:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path / "feedline.log",
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        package_logger.addHandler(file_handler)

    # aiohttp logs every connection at DEBUG
    logging.getLogger("aiohttp").setLevel(logging.WARNING)

    package_logger.debug(f"Logging initialized (level={log_level}, log_dir={log_dir})")
    return package_logger
