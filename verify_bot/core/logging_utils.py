"""Logging helpers that keep configuration consistent across modules."""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional, Tuple, Type

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
ROOT_LOGGER = "verify_bot"


def configure_library_logging(
    *,
    level: int | str = logging.INFO,
    fmt: str = DEFAULT_FORMAT,
    handlers: Optional[Iterable[logging.Handler]] = None,
) -> logging.Logger:
    """Return the package logger configured with the common format."""

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.handlers.clear()

    if handlers:
        for handler in handlers:
            handler.setFormatter(logging.Formatter(fmt))
            logger.addHandler(handler)
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt))
        logger.addHandler(handler)

    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Shortcut that returns a namespaced child logger."""

    parent = logging.getLogger(ROOT_LOGGER)
    return parent.getChild(name)


@contextmanager
def timed(
    logger: logging.Logger,
    action: str,
    *,
    level: int = logging.INFO,
    expected: Tuple[Type[BaseException], ...] = (),
) -> Iterator[None]:
    """Log the elapsed time around ``action``.

    Exceptions listed in ``expected`` are logged as a one-line warning; any
    other exception is logged with its traceback. Both are re-raised.
    """
    start = time.monotonic()
    try:
        yield
    except expected as exc:
        logger.warning("%s failed after %.3fs: %s", action, time.monotonic() - start, exc)
        raise
    except Exception:
        logger.exception("%s failed after %.3fs", action, time.monotonic() - start)
        raise
    else:
        logger.log(level, "%s completed in %.3fs", action, time.monotonic() - start)


__all__ = ["configure_library_logging", "get_logger", "timed"]
