"""
logger.py
---------
Logging setup shared by the library, the CLI and the HTTP service.

Design Decisions:
    * Everything logs under the "schemagraph" hierarchy; handlers are
      attached once, to that logger only, so embedding applications keep
      control of the root logger.
    * Log lines go to stderr. The CLI prints its JSON results on stdout,
      so the two streams never mix.
    * LOG_FILE adds a second, always-DEBUG handler with source locations.
    * ``set_level`` lets the CLI's ``--verbose`` flag raise the console
      verbosity after import without re-reading the environment.
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

from config import CONFIG, get_log_level

_ROOT_LOGGER_NAME = "schemagraph"
_CONSOLE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s | %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(filename)s:%(lineno)d | %(message)s"
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

_root = logging.getLogger(_ROOT_LOGGER_NAME)
_console: logging.Handler | None = None


def _file_handler(path: Path) -> logging.Handler | None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
    except OSError as exc:
        _root.warning("Could not open log file '%s': %s", path, exc)
        return None
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(fmt=_FILE_FORMAT, datefmt=_DATE_FORMAT))
    return handler


def _configure() -> None:
    global _console
    if _console is not None:
        return

    level = get_log_level()
    _console = logging.StreamHandler(sys.stderr)
    _console.setLevel(level)
    _console.setFormatter(logging.Formatter(fmt=_CONSOLE_FORMAT, datefmt=_DATE_FORMAT))
    _root.addHandler(_console)

    handler = _file_handler(Path(CONFIG.logging.log_file)) if CONFIG.logging.log_file else None
    if handler is not None:
        _root.addHandler(handler)
        _root.setLevel(logging.DEBUG)
    else:
        _root.setLevel(level)


_configure()


def set_level(level: int) -> None:
    """Change the console verbosity of the 'schemagraph' hierarchy."""
    if _console is not None:
        _console.setLevel(level)
    if _root.level > level:
        _root.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """
    Return a child logger scoped to the given name.

    Args:
        name: Typically ``__name__`` of the calling module.

    Returns:
        A :class:`logging.Logger` under the 'schemagraph' hierarchy.

    Example::

        log = get_logger(__name__)
        log.warning("Skipped file: %s", path)
    """
    return _root.getChild(name)
