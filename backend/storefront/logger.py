"""
Logging setup for the storefront service.

Modules log through ``logging.getLogger(__name__)``; the application entry
points call ``setup_logger()`` once so every ``storefront.*`` logger shares
the same handlers.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from storefront.config import settings


def setup_logger(
    name: str = "storefront",
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Sets up a logger with a console handler and an optional rotating file handler.

    Args:
        name: The name of the logger (defaults to the package root).
        log_level: Level name; falls back to ``settings.LOG_LEVEL``.
        log_file: Path of the log file; falls back to ``settings.LOG_FILE``.

    Returns:
        logging.Logger: The configured logger instance.
    """
    logger = logging.getLogger(name)
    logger.setLevel((log_level or settings.LOG_LEVEL).upper())

    # Check if handlers are already added to avoid duplicate logs
    if not logger.handlers:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        log_file = log_file or settings.LOG_FILE
        if log_file:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_file, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    return logger
