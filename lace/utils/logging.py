"""Engine logging helpers.

The ``lace`` logger carries the only handler and the level from
``lace.config.log_level_name()``. Module loggers (``lace.registry``,
``lace.render`` ...) are plain children that propagate to it, so one
``refresh_level()`` call re-levels the whole engine and repeated imports
(tests, Flask reloader) never double the output.

Usage:
    from lace.utils.logging import get_logger
    LOG = get_logger("lace.render")
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

from lace import config as lace_config

ROOT_NAME = "lace"

_LOCK = threading.Lock()
_PRIMARY: Optional[logging.Logger] = None


def _configured_level() -> int:
    return getattr(logging, lace_config.log_level_name(), logging.INFO)


def _primary() -> logging.Logger:
    global _PRIMARY
    if _PRIMARY is not None:
        return _PRIMARY
    with _LOCK:
        if _PRIMARY is not None:
            return _PRIMARY
        logger = logging.getLogger(ROOT_NAME)
        logger.setLevel(_configured_level())
        if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter("[lace] %(asctime)s %(levelname)s %(name)s %(message)s"))
            logger.addHandler(handler)
        # host applications configure the root logger themselves
        logger.propagate = False
        _PRIMARY = logger
        return logger


def get_logger(name: str = ROOT_NAME) -> logging.Logger:
    """Return the engine logger, or a child of it for ``lace.*`` names."""
    primary = _primary()
    if name == ROOT_NAME:
        return primary
    if not name.startswith(ROOT_NAME + "."):
        raise ValueError(f"logger name {name!r} is outside the {ROOT_NAME!r} namespace")
    return logging.getLogger(name)


def refresh_level() -> int:
    """Re-read the configured level and apply it to the engine logger."""
    logger = _primary()
    new_level = _configured_level()
    if logger.level != new_level:
        old = logging.getLevelName(logger.level)
        logger.setLevel(new_level)
        logger.info("Log level changed from %s to %s", old, logging.getLevelName(new_level))
    return logger.level


__all__ = ["ROOT_NAME", "get_logger", "refresh_level"]
