"""
Logging configuration for moire.

Sets up the package logger used by the command line and times whole
MCMC runs. Nothing here is called from inside a move.
"""

import logging
import sys
import time
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "moire"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class PerformanceLogger:
    """Context manager that logs the wall time of a chain or a whole run.

    The measured duration stays available as ``elapsed`` after the block exits.
    """

    def __init__(self, logger: logging.Logger, operation: str):
        self.logger = logger
        self.operation = operation
        self.start_time: Optional[float] = None
        self.elapsed: Optional[float] = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.info("Starting %s", self.operation)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed = time.perf_counter() - self.start_time
        if exc_type is None:
            self.logger.info("Completed %s in %.3fs", self.operation, self.elapsed)
        else:
            self.logger.error("Failed %s after %.3fs: %s", self.operation, self.elapsed, exc_val)
        return False


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    console_output: bool = True,
    format_string: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Configure the ``moire`` logger, replacing any handlers from a previous call.

    Args:
        level: Level name; unknown names fall back to INFO
        log_file: Optional file that receives the same records
        console_output: Whether to write to stderr (stdout carries command output)
        format_string: Record format shared by every handler

    Returns:
        The package logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(format_string)

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(numeric_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers = []
    if console_output:
        handlers.append(logging.StreamHandler(sys.stderr))
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.propagate = False
    return logger
