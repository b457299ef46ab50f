"""
Logging setup for the jetprep CLI.

``setup_logging`` runs once from ``jetprep.main``; every other module
only does ``logger = logging.getLogger(__name__)``. Progress lines the
operator is meant to read (``+ cmd``, ``DRY-RUN: cmd``, ``[INFO]``) are
printed by the CLI, not logged, so the console stays at WARNING unless
a flag or ``$JETPREP_LOG_LEVEL`` asks for more.

Precedence:
    --debug  >  --verbose  >  --quiet  >  $JETPREP_LOG_LEVEL  >  WARNING

``$JETPREP_LOG_FILE`` adds a file handler with full detail, at
``$JETPREP_LOG_FILE_LEVEL`` (default: the console level).
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

LEVEL_ENV = "JETPREP_LOG_LEVEL"
FILE_ENV = "JETPREP_LOG_FILE"
FILE_LEVEL_ENV = "JETPREP_LOG_FILE_LEVEL"

# (format, datefmt) per console level; anything above INFO prints the bare message
_DETAILED = ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d: %(message)s", "%H:%M:%S")
_CONSOLE_FORMATS: dict[int, tuple[str, str | None]] = {
    logging.DEBUG: _DETAILED,
    logging.INFO: ("%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
}
_BARE = ("%(message)s", None)
_FILE_FORMAT = ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d: %(message)s", "%Y-%m-%d %H:%M:%S")


def resolve_level(*, debug: bool = False, verbose: bool = False, quiet: bool = False) -> str:
    """Pick the console level from CLI flags, then the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(LEVEL_ENV, "WARNING")


def parse_level(name: str | None) -> int:
    """Level name to number. Unknown or empty names mean WARNING."""
    value = getattr(logging, (name or "").upper(), None)
    return value if isinstance(value, int) else logging.WARNING


def _console_format(level: int) -> tuple[str, str | None]:
    for threshold in (logging.DEBUG, logging.INFO):
        if level <= threshold:
            return _CONSOLE_FORMATS[threshold]
    return _BARE


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Replace the root logger's handlers with jetprep's.

    Args:
        level: Console level name.
        log_file: Optional log file; its directory is created if needed.
        log_file_level: File level name; defaults to ``level``.
    """
    console_level = parse_level(level)
    fmt, datefmt = _console_format(console_level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    handlers: list[logging.Handler] = [console]
    lowest = console_level

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_level = parse_level(log_file_level) if log_file_level else console_level
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(*_FILE_FORMAT))
        handlers.append(file_handler)
        lowest = min(lowest, file_level)

    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(lowest)

    # A broken stderr must not turn into tracebacks mid-run
    logging.raiseExceptions = False
