"""
Logging configuration.

Thin wrapper over the standard library so every module logs under the
``glean_ingest`` namespace and the host application decides where output goes.
"""

import logging

from .config import settings

_ROOT_LOGGER_NAME = "glean_ingest"
_DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def init_logging(level: str | int | None = None, fmt: str = _DEFAULT_FORMAT) -> logging.Logger:
    """
    Configure the package logger.

    Safe to call more than once; the handler is only attached the first time.

    Args:
        level: Log level name or number. Defaults to the configured level;
            unknown names fall back to INFO.
        fmt: Format string for the stream handler.

    Returns:
        The package root logger.
    """
    root = logging.getLogger(_ROOT_LOGGER_NAME)
    level = level or settings.log_level
    if isinstance(level, str):
        level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
    root.setLevel(level)

    if not any(getattr(h, "_glean_ingest", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt))
        handler._glean_ingest = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    return root


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module.

    Args:
        name: Module name, typically ``__name__``.

    Returns:
        Logger nested under the package root logger.
    """
    if name == _ROOT_LOGGER_NAME or name.startswith(f"{_ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT_LOGGER_NAME}.{name}")
