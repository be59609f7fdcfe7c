"""Logging configuration utilities."""

import logging
from typing import Iterable

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers kept at WARNING unless the bridge runs at DEBUG
NOISY_LOGGERS = ("paho",)


def setup_logging(level: str = "INFO", quiet_loggers: Iterable[str] = NOISY_LOGGERS) -> int:
    """Configure root logging for the bridge.

    Unknown level names fall back to INFO. At DEBUG the ``quiet_loggers``
    are left alone so client library chatter shows up with ``-vvv``.

    Returns:
        The numeric level applied to the root logger.
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    logging.basicConfig(level=log_level, format=LOG_FORMAT)

    if log_level > logging.DEBUG:
        for logger_name in quiet_loggers:
            logging.getLogger(logger_name).setLevel(logging.WARNING)
    return log_level
