from __future__ import annotations

import logging

ROOT_LOGGER_NAME = "odds_feed"

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str | int | None = None) -> None:
    """Attach a stream handler to the SDK logger.

    Library code never calls this; it is meant for the CLI and host applications
    that do not configure logging themselves.
    """
    if level is None:
        from odds_feed.core.config import settings

        level = settings.log_level
    if isinstance(level, str):
        level = getattr(logging, level.strip().upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))

    sdk_logger = logging.getLogger(ROOT_LOGGER_NAME)
    sdk_logger.handlers.clear()
    sdk_logger.addHandler(handler)
    sdk_logger.setLevel(level)


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name or ROOT_LOGGER_NAME)
