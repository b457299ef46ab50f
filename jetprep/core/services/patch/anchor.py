"""
Insertion point selection — pure, no file I/O.

Preference order:
    1. right after the CUDA vendor include inside the backend's
       architecture guard (``#if GGML_USE_HIP ... #else
       #include "vendors/cuda.h" ... #endif``), so the shims sit on the
       CUDA branch only;
    2. right after the last ``#include`` of the leading preamble
       (comments, blank lines, ``#pragma``, header guard, includes).

The chosen index is never 0 and never past the last line: the block
always lands between two existing lines and replaces nothing.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from jetprep.core.errors import PatchError

_GUARD_INCLUDE = re.compile(r'^\s*#\s*include\s*[<"](?:\S*/)?vendors/cuda\.h[">]')
_INCLUDE = re.compile(r"^\s*#\s*include\b")
_IF_OPEN = re.compile(r"^\s*#\s*if(?:n?def)?\b")
_IF_CLOSE = re.compile(r"^\s*#\s*endif\b")
_PREAMBLE = re.compile(
    r"^\s*(?:$|//|/\*|\*|#\s*pragma\b|#\s*include\b|#\s*ifndef\b|#\s*define\b)"
)


@dataclass(frozen=True)
class Anchor:
    """Where to insert: before ``lines[index]``."""

    index: int
    kind: str  # "arch-guard" or "include-preamble"

    @property
    def after_line(self) -> int:
        """1-based number of the line the block follows."""
        return self.index


def _guard_anchor(lines: list[str]) -> int | None:
    depth = 0
    for i, line in enumerate(lines):
        if _IF_OPEN.match(line):
            depth += 1
        elif _IF_CLOSE.match(line):
            depth = max(depth - 1, 0)
        elif depth > 0 and _GUARD_INCLUDE.match(line):
            return i + 1
    return None


def _preamble_anchor(lines: list[str]) -> int | None:
    last_include: int | None = None
    in_comment = False
    for i, line in enumerate(lines):
        if in_comment:
            if "*/" in line:
                in_comment = False
            continue
        if line.lstrip().startswith("/*") and "*/" not in line:
            in_comment = True
            continue
        if not _PREAMBLE.match(line):
            break
        if _INCLUDE.match(line):
            last_include = i + 1
    return last_include


def find_insertion_point(lines: list[str]) -> Anchor:
    """Pick where the compatibility block goes.

    Args:
        lines: File content split into lines (terminators optional).

    Raises:
        PatchError: no anchor, or the only anchor is the end of the file.
    """
    for kind, finder in (("arch-guard", _guard_anchor), ("include-preamble", _preamble_anchor)):
        index = finder(lines)
        if index is not None and 0 < index < len(lines):
            return Anchor(index=index, kind=kind)
    raise PatchError(
        "No safe insertion point: expected an include preamble followed by code"
    )


def insert_block(text: str, block: str) -> tuple[str, Anchor]:
    """Return ``text`` with ``block`` inserted at the chosen anchor."""
    lines = text.splitlines(keepends=True)
    anchor = find_insertion_point(lines)
    newline = "\r\n" if lines[0].endswith("\r\n") else "\n"
    block_lines = [line + newline for line in block.rstrip("\n").split("\n")]
    patched = lines[: anchor.index] + block_lines + lines[anchor.index :]
    return "".join(patched), anchor
