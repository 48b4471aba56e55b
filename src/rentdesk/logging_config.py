"""Logging setup for rentdesk.

Modules log through ``logging.getLogger(__name__)`` and never configure
handlers themselves. The CLI calls :func:`configure_logging` once at start-up.
"""

__all__ = [
    "KeyValueFormatter",
    "configure_logging",
    "reset_logging",
]

import logging
import sys
import threading
from typing import Any, Union

_LOGGER_PREFIX = "rentdesk"

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}


class KeyValueFormatter(logging.Formatter):
    """Formats a record as ``ts level logger: message key=value ...``."""

    def __init__(self) -> None:
        super().__init__(fmt="%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = [
            f"{key}={val}"
            for key, val in vars(record).items()
            if key not in _STDLIB_KEYS and val is not None
        ]
        if extras:
            line = f"{line} {' '.join(extras)}"
        return line


_handler: Union[logging.StreamHandler, None] = None
_lock = threading.Lock()


def _coerce_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def configure_logging(
    level: Union[int, str] = logging.WARNING,
    stream: Any = None,
) -> None:
    """Attach one stream handler to the ``rentdesk`` logger.

    Calling it again changes the level, and replaces the handler when the
    target stream differs (``sys.stderr`` is looked up on every call).

    Args:
        level: Logging level name or number
        stream: Output stream (defaults to stderr)
    """
    global _handler
    numeric_level = _coerce_level(level)
    logger = logging.getLogger(_LOGGER_PREFIX)
    logger.setLevel(numeric_level)
    target = stream or sys.stderr

    with _lock:
        if _handler is not None:
            if _handler.stream is target:
                return
            logger.removeHandler(_handler)
        _handler = logging.StreamHandler(target)
        _handler.setFormatter(KeyValueFormatter())
        logger.addHandler(_handler)
        logger.propagate = False


def reset_logging() -> None:
    """Remove the handler installed by configure_logging. FOR TESTING ONLY."""
    global _handler
    logger = logging.getLogger(_LOGGER_PREFIX)
    with _lock:
        if _handler is not None:
            logger.removeHandler(_handler)
            _handler = None
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
