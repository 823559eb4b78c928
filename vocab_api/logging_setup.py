# vocab_api/logging_setup.py
from __future__ import annotations

import logging
from typing import Union

from . import config

DEFAULT_LOGGER_NAME = "vocab_api"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def _parse_level(value: Union[str, int, None]) -> int:
    if isinstance(value, int):
        return value
    name = (value or "").strip().upper()
    level = getattr(logging, name, None)
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: Union[str, int, None] = None, *, force: bool = False) -> logging.Logger:
    """
    Initialise the root logger once and return the service logger.

    ``level`` overrides LOG_LEVEL from the environment. Repeated calls are
    no-ops unless ``force`` is set (uvicorn reloads import the app twice).
    """
    global _configured
    if not _configured or force:
        logging.basicConfig(
            level=_parse_level(level if level is not None else config.LOG_LEVEL),
            format=LOG_FORMAT,
            force=force,
        )
        _configured = True
    return logging.getLogger(DEFAULT_LOGGER_NAME)
