"""Logging configuration helpers for dessim.

The library is silent by default (a NullHandler sits on the ``dessim``
logger). Applications opt in with one of the helpers below::

    import dessim

    dessim.enable_console_logging(level="DEBUG")     # stderr
    dessim.enable_file_logging("logs/run.log")       # rotating file
    dessim.enable_json_logging()                     # one JSON object per line
    dessim.configure_from_env()                      # DESSIM_* variables

At DEBUG level the kernel writes a line every time a process suspends or
resumes, prefixed with the simulated time (``[t=12.5] ...``). Those lines go
through ``dessim.core.simulation``; use :func:`set_module_level` to turn
them on without making the rest of the library verbose.

Environment variables:
    DESSIM_LOGGING: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    DESSIM_LOG_FILE: Path to a log file (enables rotating file logging)
    DESSIM_LOG_JSON: Set to "1" for JSON output
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Literal

__all__ = [
    "JsonFormatter",
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "set_level",
    "set_module_level",
]

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_BACKUP_COUNT = 5

LOGGER_NAME = "dessim"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class JsonFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects.

    Records emitted through the simulation's time adapter carry the
    simulated time, which is written as ``sim_time``.

    Example output:
        {"timestamp": "2024-01-15T10:30:00.123456+00:00", "level": "DEBUG",
         "logger": "dessim.core.simulation", "sim_time": 12.5,
         "message": "[t=12.5] customer waits on <Timeout #7 delay=3 pending>"}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        sim_time = getattr(record, "sim_time", None)
        if sim_time is not None:
            log_data["sim_time"] = sim_time

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def _get_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, level.upper(), logging.INFO)


def _get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def _clear_handlers() -> None:
    """Remove and close every handler on the dessim logger except NullHandler."""
    logger = _get_logger()
    for handler in logger.handlers[:]:
        if not isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)
            handler.close()


def _install(handler: logging.Handler, level: LogLevel | int, formatter: logging.Formatter):
    logger = _get_logger()
    logger.setLevel(_get_level(level))
    handler.setLevel(_get_level(level))
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return handler


def _rotating_handler(path: str | Path, max_bytes: int, backup_count: int) -> RotatingFileHandler:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count)


def enable_console_logging(
    level: LogLevel | int = "INFO",
    format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> logging.StreamHandler:
    """Log to stderr.

    Args:
        level: Log level name or int.
        format: Log message format string.
        date_format: Date format for ``%(asctime)s``.

    Returns:
        The created StreamHandler.
    """
    return _install(logging.StreamHandler(), level, logging.Formatter(format, date_format))


def enable_file_logging(
    path: str | Path,
    level: LogLevel | int = "INFO",
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> RotatingFileHandler:
    """Log to a rotating file.

    When the file reaches ``max_bytes`` it is renamed with a numeric suffix
    and a new one is started; ``backup_count`` old files are kept.

    Args:
        path: Log file path. Parent directories are created.
        level: Log level name or int.
        max_bytes: Maximum size of each file. Default 10 MB.
        backup_count: Number of rotated files to keep.
        format: Log message format string.
        date_format: Date format for ``%(asctime)s``.

    Returns:
        The created RotatingFileHandler.
    """
    handler = _rotating_handler(path, max_bytes, backup_count)
    return _install(handler, level, logging.Formatter(format, date_format))


def enable_json_logging(
    level: LogLevel | int = "INFO",
    path: str | Path | None = None,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
) -> logging.Handler:
    """Log JSON lines to stderr, or to a rotating file when ``path`` is given.

    Returns:
        The created handler, formatted with :class:`JsonFormatter`.
    """
    if path is None:
        handler: logging.Handler = logging.StreamHandler()
    else:
        handler = _rotating_handler(path, max_bytes, backup_count)
    return _install(handler, level, JsonFormatter())


def configure_from_env() -> None:
    """Configure logging from the DESSIM_* environment variables.

    Does nothing when neither ``DESSIM_LOGGING`` nor ``DESSIM_LOG_FILE`` is
    set. A file without a level logs at INFO.
    """
    level = os.environ.get("DESSIM_LOGGING", "").upper()
    log_file = os.environ.get("DESSIM_LOG_FILE", "")
    use_json = os.environ.get("DESSIM_LOG_JSON", "") == "1"

    if not level and not log_file:
        return

    level = level or "INFO"

    if use_json:
        enable_json_logging(level=level, path=log_file or None)
    elif log_file:
        enable_file_logging(log_file, level=level)
    else:
        enable_console_logging(level=level)


def set_level(level: LogLevel | int) -> None:
    """Set the level of the ``dessim`` logger."""
    _get_logger().setLevel(_get_level(level))


def set_module_level(module: str, level: LogLevel | int) -> None:
    """Set the level of one dessim submodule.

    Args:
        module: Module name relative to dessim, e.g. ``"core.simulation"``.
        level: Log level name or int.

    Example:
        >>> dessim.enable_console_logging(level="INFO")
        >>> dessim.set_module_level("core.simulation", "DEBUG")
    """
    logging.getLogger(f"{LOGGER_NAME}.{module}").setLevel(_get_level(level))


def disable_logging() -> None:
    """Remove all handlers and silence the dessim logger."""
    logger = _get_logger()
    _clear_handlers()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.CRITICAL + 1)
