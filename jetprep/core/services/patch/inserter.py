"""
Patch inserter — put the compatibility block into ggml's CUDA header.

Steps:
    locate target → marker check → anchor → backup → write → verify

The marker check runs before anything is written, so a second call on
a patched file is a no-op. The backup (``<file>.bak.<timestamp>``,
content and mode preserved) is made before the first write and is
never removed by this module.
"""

from __future__ import annotations

import logging
import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from jetprep.core.errors import CorruptionRisk, NotFoundError, PatchError, PatchWriteError
from jetprep.core.services.patch.anchor import insert_block
from jetprep.core.services.patch.block import (
    CANDIDATE_PATHS,
    COMPAT_BLOCK,
    MARKER,
    TARGET_FILENAME,
)

logger = logging.getLogger(__name__)


def default_search_roots() -> list[Path]:
    return [Path.cwd(), Path.home() / "llama.cpp"]


@dataclass
class PatchResult:
    """What ``insert_patch`` did."""

    status: Literal["already-present", "inserted"]
    path: Path
    backup_path: Path | None = None
    anchor_kind: str | None = None
    after_line: int | None = None

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "path": str(self.path),
            "backup_path": str(self.backup_path) if self.backup_path else None,
            "anchor_kind": self.anchor_kind,
            "after_line": self.after_line,
        }


def locate_target(
    path: Path | None = None,
    search_roots: list[Path] | None = None,
) -> Path:
    """Resolve the file to patch.

    Raises:
        NotFoundError: explicit path missing, or no conventional location matched.
    """
    if path is not None:
        if not path.is_file():
            raise NotFoundError(f"Target file not found: {path}")
        return path

    roots = search_roots if search_roots is not None else default_search_roots()
    tried: list[str] = []
    for root in roots:
        for rel in CANDIDATE_PATHS:
            candidate = root / rel
            tried.append(str(candidate))
            if candidate.is_file():
                logger.info("Found %s at %s", TARGET_FILENAME, candidate)
                return candidate

    raise NotFoundError(
        f"{TARGET_FILENAME} not found. Tried: {', '.join(tried) or '(no search roots)'}"
    )


def make_backup(path: Path) -> Path:
    """Copy ``path`` beside itself with a timestamp suffix."""
    ts = time.strftime("%Y%m%d_%H%M%S")
    dest = path.with_name(f"{path.name}.bak.{ts}")
    n = 1
    while dest.exists():
        dest = path.with_name(f"{path.name}.bak.{ts}.{n}")
        n += 1
    shutil.copy2(path, dest)
    logger.info("Backed up %s → %s", path, dest)
    return dest


def _read(path: Path) -> str:
    return path.read_bytes().decode("utf-8", errors="surrogateescape")


def insert_patch(
    path: Path | None = None,
    *,
    search_roots: list[Path] | None = None,
) -> PatchResult:
    """Insert the compatibility block into the target exactly once.

    Raises:
        NotFoundError: no target file; nothing was written.
        PatchError: unreadable file or no safe anchor; nothing was written.
        PatchWriteError: the write failed after the backup was made.
        CorruptionRisk: the re-read file does not hold exactly one marker.
    """
    target = locate_target(path, search_roots)

    try:
        original = _read(target)
    except OSError as e:
        raise PatchError(f"Cannot read {target}: {e.strerror or e}") from e

    if MARKER in original:
        logger.info("%s already contains %s; nothing to do", target, MARKER)
        return PatchResult(status="already-present", path=target)

    patched, anchor = insert_block(original, COMPAT_BLOCK)

    try:
        backup = make_backup(target)
    except OSError as e:
        raise PatchError(f"Cannot back up {target}: {e.strerror or e}") from e

    try:
        target.write_bytes(patched.encode("utf-8", errors="surrogateescape"))
    except OSError as e:
        raise PatchWriteError(target, backup, e.strerror or str(e)) from e

    try:
        count = _read(target).count(MARKER)
    except OSError:
        count = 0
    if count != 1:
        raise CorruptionRisk(target, backup, count)

    logger.info("Inserted %s block into %s after line %d (%s)",
                MARKER, target, anchor.after_line, anchor.kind)
    return PatchResult(
        status="inserted",
        path=target,
        backup_path=backup,
        anchor_kind=anchor.kind,
        after_line=anchor.after_line,
    )
