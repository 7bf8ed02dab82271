"""Logging configuration for Sift.

The classifier and analytics modules log through the "sift" logger. When sift
is embedded as a library nothing is emitted until the host application calls
setup_logging() or attaches its own handlers.
"""

import logging
from datetime import date
from config import Config

LOGGER_NAME = "sift"

logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())


def setup_logging(config: Config, console: bool = True) -> logging.Logger:
    """Set up application logging with file and optional console handlers.

    Args:
        config: Application configuration containing log settings.
        console: Also log to stderr (the CLI does, embedding applications
                 usually don't).

    Returns:
        Configured logger instance.
    """
    config.log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(config.log_level)

    # Clear any existing handlers (in case this is called multiple times)
    logger.handlers.clear()

    detailed_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # One file per day: sift-{date}.log
    log_file_path = config.log_dir / f"sift-{date.today().isoformat()}.log"
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(config.log_level)
    file_handler.setFormatter(detailed_formatter)
    logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(config.log_level)
        console_handler.setFormatter(logging.Formatter("%(levelname)s - %(message)s"))
        logger.addHandler(console_handler)

    return logger


def get_logger() -> logging.Logger:
    """Get the application logger.

    Returns:
        The sift logger instance.
    """
    return logging.getLogger(LOGGER_NAME)
