"""
Logging setup for the wiregraph editor.

Library modules only create ``logging.getLogger(__name__)`` loggers. The
editor entry point calls ``setup_logging`` once to install a rotating log
file, optional stderr output and a hook that logs crashes.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


LOG_FILE_NAME = "wiregraph.log"
LOG_MAX_BYTES = 5_000_000
LOG_BACKUP_COUNT = 3

DEFAULT_LOG_DIR = Path.home() / ".wiregraph" / "logs"

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
STDERR_FORMAT = "%(levelname)-8s %(name)s: %(message)s"

_log_file_path: Optional[Path] = None
_original_excepthook = sys.excepthook


def _resolve_level(level: str | int | None) -> int:
    """Resolve a user-provided log level to a logging constant."""
    if isinstance(level, int):
        return level
    return getattr(logging, str(level or "INFO").upper(), logging.INFO)


def _resolve_log_dir(log_dir: str | Path | None) -> Path:
    """``$WIREGRAPH_LOG_DIR``, else log_dir, else ``~/.wiregraph/logs``."""
    path = Path(os.environ.get("WIREGRAPH_LOG_DIR") or log_dir or DEFAULT_LOG_DIR)
    return path.expanduser()


def _log_unhandled_exception(exc_type, exc_value, exc_traceback) -> None:
    if not issubclass(exc_type, KeyboardInterrupt):
        logging.getLogger("wiregraph.crash").critical(
            "Unhandled exception", exc_info=(exc_type, exc_value, exc_traceback)
        )
    _original_excepthook(exc_type, exc_value, exc_traceback)


def setup_logging(
    log_level: str | int | None = None,
    log_dir: str | Path | None = None,
    enable_stderr: bool | None = None,
) -> Path:
    """
    Configure process-wide logging.

    The log file always records DEBUG. ``$WIREGRAPH_LOG_LEVEL`` (or
    log_level) sets the stderr threshold and ``WIREGRAPH_LOG_TO_STDERR=0``
    turns stderr output off. Repeated calls keep the first setup.

    Returns:
        Path of the active log file
    """
    global _log_file_path

    if _log_file_path is not None:
        return _log_file_path

    directory = _resolve_log_dir(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    log_file = directory / LOG_FILE_NAME

    if enable_stderr is None:
        enable_stderr = os.environ.get("WIREGRAPH_LOG_TO_STDERR", "1") != "0"

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
    root_logger.addHandler(file_handler)

    if enable_stderr:
        stderr_handler = logging.StreamHandler()
        stderr_handler.setLevel(_resolve_level(os.environ.get("WIREGRAPH_LOG_LEVEL", log_level)))
        stderr_handler.setFormatter(logging.Formatter(STDERR_FORMAT))
        root_logger.addHandler(stderr_handler)

    sys.excepthook = _log_unhandled_exception
    _log_file_path = log_file

    logging.getLogger(__name__).info("Logging to '%s'", log_file)
    return log_file
