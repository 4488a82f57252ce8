"""
Listener Initialization - Logging Module.

Module: logging.py
Configures loguru logger for the listener.
Sets up the colored console sink and optional file rotation.
"""

import sys

from loguru import logger

from event_relay.config.constants import LOG_RETENTION, LOG_ROTATION


CONSOLE_FORMAT = (
    "<dim>[{time:HH:mm:ss}]</dim> "
    "<level>{level: <8}</level> "
    "<cyan>{extra[pipeline]: <18}</cyan> "
    "<level>{message}</level>"
)

FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{extra[pipeline]} | {name}:{function}:{line} - {message}"
)


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """
    Configure logger.

    Args:
        level: Minimum level for all sinks
        log_file: Optional path of a rotated log file
    """
    logger.remove()
    logger.configure(extra={"pipeline": "main"})
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True)

    if log_file:
        logger.add(
            log_file,
            rotation=LOG_ROTATION,
            retention=LOG_RETENTION,
            level=level,
            format=FILE_FORMAT,
            encoding="utf-8",
        )
