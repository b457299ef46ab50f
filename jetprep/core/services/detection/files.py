"""
Filesystem probes — path presence, exact lines, swap file size.

All functions are read-only. A missing file is an ordinary answer
(no lines, size 0); a file that exists but cannot be read raises
ProbeError.
"""

from __future__ import annotations

import os
from pathlib import Path

from jetprep.core.errors import ProbeError

BYTES_PER_GB = 1024 ** 3


def path_exists(path: Path) -> bool:
    """Whether anything occupies ``path``, dangling symlinks included."""
    return os.path.lexists(path)


def read_text(path: Path) -> str:
    """File content, or ``""`` when the file does not exist."""
    try:
        return path.read_bytes().decode("utf-8", errors="surrogateescape")
    except FileNotFoundError:
        return ""
    except OSError as e:
        raise ProbeError(str(path), f"cannot read: {e.strerror or e}") from e


def read_lines(path: Path) -> list[str]:
    """Lines of ``path`` without their ``\\n`` terminator.

    Only ``\\n`` splits lines. A ``\\r`` or trailing space stays part
    of the line, so it never compares equal to a canonical line.
    """
    text = read_text(path)
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def has_line(path: Path, line: str) -> bool:
    """Exact whole-line match, like ``grep -Fqx``."""
    return line in read_lines(path)


def contains_text(path: Path, needle: str) -> bool:
    """Plain substring match over the whole file."""
    return needle in read_text(path)


def ends_with_newline(path: Path) -> bool:
    """True for an empty/missing file or one whose last byte is ``\\n``."""
    text = read_text(path)
    return not text or text.endswith("\n")


def file_size_gb(path: Path) -> int:
    """Size of a regular file in whole GB (floor). Missing file is 0."""
    try:
        if not path.is_file():
            return 0
        return path.stat().st_size // BYTES_PER_GB
    except OSError as e:
        raise ProbeError(str(path), f"cannot stat: {e.strerror or e}") from e
