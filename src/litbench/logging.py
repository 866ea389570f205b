"""Logging setup for litbench.

Progress messages ("Launching chrome", "Running benchmark ...") are
logged under the ``litbench`` namespace and printed bare on the console,
so they read like the result tables that ``click.echo`` writes between
them. Warnings and errors keep a level prefix so they stand out from
those lines.

aiohttp reports request-handling failures of the benchmark server on its
own ``aiohttp.*`` loggers; those are sent to the same handlers.
"""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "litbench"
# aiohttp.server logs handler exceptions; aiohttp.web logs app-level issues.
_SERVER_LOGGERS = ("aiohttp.server", "aiohttp.web")
_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_VERBOSE_CONSOLE_FORMAT = "%(levelname)-8s %(name)s: %(message)s"


class _ConsoleFormatter(logging.Formatter):
    """Bare messages for INFO and below, ``Warning: ...`` above."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno >= logging.WARNING:
            return f"{record.levelname.capitalize()}: {message}"
        return message


def setup_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure the litbench logger and the benchmark server's loggers.

    Args:
        verbose: Show DEBUG messages (run ids, navigation, saved sessions)
            with their level and logger name.
        quiet: Hide progress messages; only warnings and errors are shown.
            Ignored if *verbose* is True.
        log_file: Also write everything, at DEBUG level, to this file.

    Returns:
        The configured ``litbench`` logger.
    """
    console = logging.StreamHandler()
    if verbose:
        console.setLevel(logging.DEBUG)
        console.setFormatter(logging.Formatter(_VERBOSE_CONSOLE_FORMAT))
    else:
        console.setLevel(logging.WARNING if quiet else logging.INFO)
        console.setFormatter(_ConsoleFormatter("%(message)s"))
    handlers: list[logging.Handler] = [console]

    if log_file is not None:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT))
        handlers.append(fh)

    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    for name in (_LOGGER_NAME, *_SERVER_LOGGERS):
        target = logging.getLogger(name)
        # Reconfiguring replaces the handlers of an earlier call.
        target.handlers.clear()
        target.propagate = False
        for handler in handlers:
            target.addHandler(handler)
    for name in _SERVER_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a named child logger under the litbench namespace."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")
