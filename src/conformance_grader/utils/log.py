"""
Logging utilities for the conformance grading harness.

Provides structured logging with timestamps and different severity levels.
"""

import sys
import logging
from pathlib import Path
from typing import Optional

CONSOLE_FORMAT = '%(asctime)s | %(levelname)-8s | %(message)s'
FILE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

ROOT_LOGGER = "conformance_grader"


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """
    Get a logger instance for the specified module.

    Module loggers live under the package logger, so handlers are only
    attached once, at the top.

    Args:
        name: Logger name, typically __name__ of the calling module

    Returns:
        Standard logging.Logger instance
    """
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        root.setLevel(logging.INFO)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(console_handler)

    return logging.getLogger(name)


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """Configure level and optional file output for the whole package.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path; parent folders are created

    Returns:
        The package logger
    """
    root = get_logger(ROOT_LOGGER)
    root.setLevel(getattr(logging, (level or 'INFO').upper(), logging.INFO))

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(file_handler)

    return root
