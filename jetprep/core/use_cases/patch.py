"""
Patch use case — apply the CUDA 10.x block and record it.

Errors from the inserter propagate to the caller unchanged; the ledger
entry is written either way so a failed attempt leaves a trace with
its backup path.
"""

from __future__ import annotations

from pathlib import Path

from jetprep.core.engine.orchestrator import generate_operation_id
from jetprep.core.errors import CorruptionRisk, PatchError, PatchWriteError
from jetprep.core.persistence.audit import AuditEntry, AuditLedger
from jetprep.core.services.patch.inserter import PatchResult, insert_patch


def run_patch(
    path: Path | None = None,
    *,
    search_roots: list[Path] | None = None,
    audit_log: Path | None = None,
) -> PatchResult:
    entry = AuditEntry(operation_id=generate_operation_id(), operation_type="patch")
    try:
        result = insert_patch(path, search_roots=search_roots)
    except PatchError as e:
        entry.status = "failed"
        entry.failed = 1
        entry.errors = [str(e)]
        if isinstance(e, (PatchWriteError, CorruptionRisk)):
            entry.context = {"path": str(e.path), "backup_path": str(e.backup_path)}
        _write(audit_log, entry)
        raise

    entry.status = "ok"
    entry.actions_total = 1 if result.status == "inserted" else 0
    entry.changed = entry.actions_total
    entry.satisfied = 1 - entry.actions_total
    entry.context = result.to_dict()
    _write(audit_log, entry)
    return result


def _write(audit_log: Path | None, entry: AuditEntry) -> None:
    if audit_log is not None:
        AuditLedger(audit_log).append(entry)
