"""Logger setup: rich console output plus an append-only timestamped log file."""

import logging
import os
from pathlib import Path
from typing import Union

from rich.logging import RichHandler

from .ui import console, print_warning

LOGGER_NAME: str = "server_maintenance"
LOG_FORMAT: str = "[%(asctime)s] [%(levelname)s] %(message)s"
LOG_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"


def get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def setup_logger(log_file: Union[str, Path], debug: bool = False) -> logging.Logger:
    """
    Configure the package logger with Rich formatting and persistent file logging.

    The file handler always records DEBUG so every command and state transition
    lands in the log sink; the console only shows DEBUG when asked to.

    Args:
        log_file: Path to the log file
        debug: Show debug messages on the console

    Returns:
        Configured logger instance
    """
    logger = get_logger()
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    rich_handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        markup=False,
        show_time=True,
        show_path=False,
    )
    rich_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    rich_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(rich_handler)

    log_file = Path(log_file)
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
        logger.addHandler(file_handler)
        os.chmod(str(log_file), 0o600)
    except OSError as e:
        print_warning(f"Could not set up file logging to {log_file}: {e}")

    return logger
