"""
Logging configuration — one setup call shared by the CLI and web server.

Every module does ``logger = logging.getLogger(__name__)`` and inherits
what is configured here.

Level precedence:
    CLI flag  >  KASPA_AIO_LOG_LEVEL env var  >  WARNING

Optional file output via KASPA_AIO_LOG_FILE / KASPA_AIO_LOG_FILE_LEVEL.
"""

from __future__ import annotations

import logging
import os
import sys

ENV_LEVEL = "KASPA_AIO_LOG_LEVEL"
ENV_FILE = "KASPA_AIO_LOG_FILE"
ENV_FILE_LEVEL = "KASPA_AIO_LOG_FILE_LEVEL"

# (max level, format, datefmt): the first row whose level is >= the
# console level wins
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
    (logging.CRITICAL, "%(message)s", None),
)

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Libraries that log per request or per connection
_NOISY_LOGGERS = ("urllib3", "werkzeug")


def _console_handler(level: int) -> logging.Handler:
    fmt, datefmt = "%(message)s", None
    for max_level, row_fmt, row_datefmt in _CONSOLE_FORMATS:
        if level <= max_level:
            fmt, datefmt = row_fmt, row_datefmt
            break
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
    return handler


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Configure the root logger for the whole process.

    Replaces any handlers installed by an earlier call, so calling it
    twice does not duplicate output.

    Args:
        level: Console log level name.
        log_file: Optional path to a log file.
        log_file_level: Separate level for the file (defaults to ``level``).
        quiet_third_party: Keep noisy third-party loggers at WARNING unless
            running at DEBUG.
    """
    console_level = _parse_level(level)
    handlers = [_console_handler(console_level)]
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handlers.append(_file_handler(log_file, file_level))
        root_level = min(root_level, file_level)

    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(root_level)

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False


def setup_logging_from_env(level: str | None = None, debug: bool = False) -> None:
    """Resolve the level (flag > env > WARNING) and file settings, then configure."""
    setup_logging(
        level=level or os.environ.get(ENV_LEVEL, "WARNING"),
        log_file=os.environ.get(ENV_FILE),
        log_file_level=os.environ.get(ENV_FILE_LEVEL),
        quiet_third_party=not debug,
    )


def _parse_level(level: str | None) -> int:
    """Level name to its numeric value; unknown names fall back to WARNING."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING
