# === FILE: tumblr_mirror/logger.py ===
"""Logging for **TumblrMirror**.

Everything logs through the ``TumblrMirror`` logger. The CLI calls
:func:`init_logging` once; a mirror run logs through :func:`for_blog`, which
tags every line with the blog name::

    from tumblr_mirror.logger import for_blog
    for_blog("staff").info("starting up.")   # -> "[staff] starting up."
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Final, MutableMapping, Tuple, Union

_DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_LOGGER_NAME: Final[str] = "TumblrMirror"
_MAX_LOG_BYTES: Final[int] = 5 * 1024 * 1024

_LevelT = Union[int, str]


class BlogLoggerAdapter(logging.LoggerAdapter):
    """Prefix every message with ``[<tumblr name>]``."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        return f"[{self.extra['blog']}] {msg}", kwargs


def _build_handlers(log_file: str | Path | None, fmt: str) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        handlers.append(
            RotatingFileHandler(str(log_file), maxBytes=_MAX_LOG_BYTES, backupCount=3, encoding="utf-8")
        )
    formatter = logging.Formatter(fmt)
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
) -> logging.Logger:
    """Install fresh handlers on the project logger.

    Handlers from an earlier call are closed and removed, so calling this
    again never duplicates output. *log_file* adds a rotating file next to
    stdout.
    """
    lg = logging.getLogger(_LOGGER_NAME)
    lg.setLevel(level)
    for old in list(lg.handlers):
        lg.removeHandler(old)
        old.close()
    for handler in _build_handlers(log_file, log_format):
        lg.addHandler(handler)
    lg.propagate = False
    return lg


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
) -> logging.Logger:
    """Configure logging from CLI options."""
    return configure(level=level, log_file=log_file, log_format=log_format)


def for_blog(name: str) -> BlogLoggerAdapter:
    """Return the project logger tagged with the blog *name*."""
    return BlogLoggerAdapter(logging.getLogger(_LOGGER_NAME), {"blog": name})


logger: logging.Logger = logging.getLogger(_LOGGER_NAME)

__all__ = ["logger", "configure", "init_logging", "for_blog", "BlogLoggerAdapter"]
