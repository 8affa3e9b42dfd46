"""
Logging setup for the guest photos CLI and services.

Every logger of the project lives under the ``guest-photos`` namespace. A
single handler sits on the namespace logger and children propagate to it, so
one call to ``configure_logging`` sets the level and format for the whole
pipeline.

Environment Variables:
    LOG_LEVEL: Default level when none is passed (DEBUG, INFO, WARNING, ERROR)
    LOG_FORMAT: Default format when none is passed ("structured" or "simple")
"""

import logging
import os
from typing import IO, Optional, Union

LOGGER_NAMESPACE = "guest-photos"

LOG_FORMATS = {
    "structured": "%(asctime)s | %(name)s | %(levelname)-8s | %(message)s",
    "simple": "%(levelname)s %(name)s: %(message)s",
}

_handler: Optional[logging.StreamHandler] = None


def resolve_level(level: Union[str, int, None] = None) -> int:
    """Numeric level for a name or number; unknown names fall back to INFO."""
    if isinstance(level, int):
        return level
    name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else logging.INFO


def configure_logging(
    level: Union[str, int, None] = None,
    format_type: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """
    (Re)configure the namespace logger.

    Safe to call repeatedly: the handler is created once and then only its
    format and stream are updated. Logs go to stderr unless a stream is
    given, leaving stdout to command output.
    """
    global _handler

    root = logging.getLogger(LOGGER_NAMESPACE)
    root.setLevel(resolve_level(level))
    root.propagate = False

    if _handler is None or _handler not in root.handlers:
        _handler = logging.StreamHandler(stream)
        root.addHandler(_handler)
    elif stream is not None:
        _handler.setStream(stream)

    fmt = (format_type or os.getenv("LOG_FORMAT") or "structured").lower()
    _handler.setFormatter(
        logging.Formatter(
            LOG_FORMATS.get(fmt, LOG_FORMATS["structured"]),
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    return root


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Logger inside the project namespace.

    ``get_logger("cli")`` and ``get_logger("guest-photos.cli")`` return the
    same logger. Defaults are applied on first use.
    """
    if _handler is None:
        configure_logging()
    if not name or name == LOGGER_NAMESPACE:
        return logging.getLogger(LOGGER_NAMESPACE)
    if name.startswith(LOGGER_NAMESPACE + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
