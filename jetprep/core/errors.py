"""
Error taxonomy for jetprep.

Runners never raise: a non-zero exit becomes a failed Receipt. These
exceptions are raised by probes, by ``ActionRunner.run_all`` and by the
patch inserter, and are turned into outcomes (or CLI errors) by the
layer that owns the operation.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from jetprep.core.models.action import Receipt


class JetprepError(Exception):
    """Base class for every error raised by jetprep."""


class ConfigError(JetprepError):
    """Raised when the configuration file is invalid or unreadable."""


class ProbeError(JetprepError):
    """A read-only check could not determine the state of a resource."""

    def __init__(self, resource: str, message: str):
        super().__init__(f"{resource}: {message}")
        self.resource = resource
        self.message = message


class ActionError(JetprepError):
    """A mutating command returned a non-zero status.

    Carries every receipt produced by the operation so far, the failed
    one last.
    """

    def __init__(self, receipts: list[Receipt]):
        failed = receipts[-1]
        code = failed.return_code if failed.return_code is not None else "?"
        detail = f": {failed.error}" if failed.error else ""
        super().__init__(f"'{failed.command}' failed (exit {code}){detail}")
        self.receipts = receipts

    @property
    def receipt(self) -> Receipt:
        return self.receipts[-1]


class NotFoundError(JetprepError):
    """A required input artifact is absent."""


class PatchError(JetprepError):
    """The compatibility block could not be placed in the target file."""


class PatchWriteError(PatchError):
    """Writing the patched file failed after the backup was made."""

    def __init__(self, path: Path, backup_path: Path, reason: str):
        super().__init__(
            f"Cannot write {path}: {reason}. Original preserved at {backup_path}"
        )
        self.path = path
        self.backup_path = backup_path


class CorruptionRisk(PatchError):
    """Post-write verification did not find exactly one marker."""

    def __init__(self, path: Path, backup_path: Path, marker_count: int):
        super().__init__(
            f"Verification failed for {path}: expected 1 marker, found "
            f"{marker_count}. Restore from {backup_path} if the build breaks"
        )
        self.path = path
        self.backup_path = backup_path
        self.marker_count = marker_count
