"""
Logging setup for the devbootstrap CLI.

``configure_logging`` runs once, from the ``cli`` group callback, and
every ``logging.getLogger(__name__)`` in the package inherits it.

The console level is the first that applies of ``--debug``,
``--verbose``, ``--quiet``, ``DEVBOOTSTRAP_LOG_LEVEL`` and WARNING.
``DEVBOOTSTRAP_LOG_FILE`` adds a file handler whose level comes from
``DEVBOOTSTRAP_LOG_FILE_LEVEL`` (DEBUG when unset), so a quiet console
can still leave a full trace of a bootstrap run on disk.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping

ENV_LOG_LEVEL = "DEVBOOTSTRAP_LOG_LEVEL"
ENV_LOG_FILE = "DEVBOOTSTRAP_LOG_FILE"
ENV_LOG_FILE_LEVEL = "DEVBOOTSTRAP_LOG_FILE_LEVEL"

_DETAILED = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s"

# (format, datefmt) by console level; WARNING and above print bare messages
_CONSOLE_FORMATS = {
    logging.DEBUG: (_DETAILED, "%H:%M:%S"),
    logging.INFO: ("%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
}
_FILE_FORMAT = (_DETAILED, "%Y-%m-%d %H:%M:%S")


def level_number(name: str | None, default: int = logging.WARNING) -> int:
    """Numeric level for a name like ``info``; ``default`` when unknown."""
    if not name:
        return default
    return logging.getLevelNamesMapping().get(name.strip().upper(), default)


def console_level(
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    env_level: str | None = None,
) -> int:
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    if quiet:
        return logging.ERROR
    return level_number(env_level)


def configure_logging(
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> int:
    """Replace the root logger's handlers for this process.

    Args:
        debug, verbose, quiet: The global CLI flags.
        environ: Source of the ``DEVBOOTSTRAP_LOG_*`` variables;
            ``os.environ`` when None.

    Returns:
        The console level in effect.
    """
    env = os.environ if environ is None else environ
    level = console_level(debug, verbose, quiet, env.get(ENV_LOG_LEVEL))

    fmt, datefmt = _CONSOLE_FORMATS.get(level, ("%(message)s", None))
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    handlers: list[logging.Handler] = [console]

    log_file = env.get(ENV_LOG_FILE)
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level_number(env.get(ENV_LOG_FILE_LEVEL), default=logging.DEBUG))
        file_handler.setFormatter(logging.Formatter(*_FILE_FORMAT))
        handlers.append(file_handler)

    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(min(handler.level for handler in handlers))

    logging.raiseExceptions = False
    return level
