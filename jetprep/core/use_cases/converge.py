"""
Converge use case — bring the host to the configured state.

Builds the action runner (shell backend unless one is injected), runs
the fixed sequence, and records the result in the audit ledger when the
run was real.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from jetprep.adapters.base import Runner
from jetprep.core.engine.orchestrator import ConvergeReport, converge
from jetprep.core.engine.runner import ActionRunner, Announce
from jetprep.core.models.config import RunConfig
from jetprep.core.persistence.audit import AuditEntry, AuditLedger

logger = logging.getLogger(__name__)


@dataclass
class ConvergeResult:
    """Result of a converge run."""

    report: ConvergeReport
    audit_written: bool = False

    @property
    def exit_code(self) -> int:
        return 0 if self.report.all_ok else 1

    def to_dict(self) -> dict:
        result = self.report.to_dict()
        result["audit_written"] = self.audit_written
        return result


def run_converge(
    config: RunConfig,
    backend: Runner | None = None,
    announce: Announce | None = None,
) -> ConvergeResult:
    """Run every convergence operation once.

    Args:
        config: The immutable run configuration.
        backend: Optional runner; defaults to the shell runner.
        announce: Sink for action and verdict lines.
    """
    if backend is None:
        from jetprep.adapters.shell.command import ShellCommandRunner

        backend = ShellCommandRunner()

    runner = ActionRunner(backend, dry_run=config.dry_run, announce=announce)
    report = converge(config, runner)
    result = ConvergeResult(report=report)

    if not config.dry_run and config.audit_log is not None:
        result.audit_written = AuditLedger(config.audit_log).append(
            _audit_entry(report)
        )

    return result


def _audit_entry(report: ConvergeReport) -> AuditEntry:
    return AuditEntry(
        operation_id=report.operation_id,
        operation_type="converge",
        status=report.status,
        actions_total=report.actions_total,
        changed=report.changed,
        satisfied=report.satisfied,
        skipped=report.skipped,
        failed=report.failed,
        resources={o.resource: o.status for o in report.outcomes},
        errors=[f"{o.resource}: {o.reason}" for o in report.outcomes if o.status == "failed"],
    )
