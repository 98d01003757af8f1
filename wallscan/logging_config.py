"""
Logging configuration for wallscan.

Library modules only create module-level loggers under the ``wallscan``
namespace; handlers are attached here, by the command line tool or by the
host application.
"""

import logging
import sys
import time
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "wallscan"

CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def configure_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """
    Attach console (and optionally file) handlers to the wallscan logger.

    Calling this again replaces the previously installed handlers.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path of a log file that receives DEBUG output

    Returns:
        The configured ``wallscan`` logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    level = getattr(logging, log_level.upper(), logging.INFO)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(console_handler)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(file_handler)

        logger.info(f"Logging initialized. Log file: {log_path}")

    return logger


class PerformanceTimer:
    """Context manager for timing code execution."""

    def __init__(self, logger: logging.Logger, operation_name: str):
        self.logger = logger
        self.operation_name = operation_name
        self.start_time = None
        self.end_time = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.debug(f"Starting: {self.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.end_time = time.perf_counter()
        duration = self.end_time - self.start_time

        if exc_type is None:
            self.logger.debug(f"Completed: {self.operation_name} | duration_seconds={duration:.3f}")
        else:
            self.logger.error(
                f"Failed: {self.operation_name} | duration_seconds={duration:.3f} | error={exc_val}"
            )

        return False

    @property
    def elapsed(self) -> float:
        """Elapsed time in seconds."""
        if self.start_time is None:
            return 0.0
        if self.end_time is None:
            return time.perf_counter() - self.start_time
        return self.end_time - self.start_time
