"""Logging configuration for callbudget.

Sets up logging to the console and, when a log directory is configured,
to a date-named file.
"""

import logging
from datetime import date
from pathlib import Path

from callbudget.app.config import Settings

ROOT_LOGGER = "callbudget"


def setup_logging(settings: Settings) -> logging.Logger:
    """Set up application logging with console and optional file handlers.

    Args:
        settings: Application settings containing log level and directory.

    Returns:
        Configured root application logger.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(settings.log_level.upper())

    # Clear any existing handlers (in case this is called multiple times)
    logger.handlers.clear()

    detailed_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(detailed_formatter)
    logger.addHandler(console_handler)

    if settings.log_dir:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / f"callbudget-{date.today().isoformat()}.log")
        file_handler.setFormatter(detailed_formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child of the application logger, e.g. ``callbudget.expenses``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
