"""Logging configuration using loguru"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"


def console_level(verbose: bool = False, quiet: bool = False) -> str:
    if quiet:
        return "WARNING"
    return "DEBUG" if verbose else "INFO"


def setup_logging(
    verbose: bool = False, log_file: Optional[Path] = None, quiet: bool = False
) -> None:
    """
    Configure loguru for scraper runs.

    The console sink writes to stderr; stdout is reserved for JSON results.

    Args:
        verbose: Enable debug-level console logging
        log_file: Optional file path, always logged at DEBUG
        quiet: Only warnings and errors on the console (overrides verbose)
    """
    logger.remove()

    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=console_level(verbose, quiet),
        colorize=True,
    )

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=FILE_FORMAT,
            level="DEBUG",
            rotation="100 MB",
            retention="30 days",
            compression="zip",
            enqueue=True,
        )
        logger.debug(f"Logging to file: {log_file}")
