"""
Orchestrator — the fixed convergence sequence.

Runs every operation in order on one thread, collecting one Outcome
per resource. A failing operation never stops the independent ones
after it. The CUDA gate is the only dependency: when the toolchain is
not detected, the symlink and profile operations are both skipped.

Flow:
    swap → system update → packages → jetson-stats → vscode
         → [cuda gate] → cuda symlink → shell profile
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from jetprep.core.engine.runner import ActionRunner
from jetprep.core.errors import ActionError, NotFoundError, ProbeError
from jetprep.core.models.config import RunConfig
from jetprep.core.models.outcome import Outcome, ProbeResult
from jetprep.core.services.converge import (
    cuda_link,
    jetson_stats,
    packages,
    profile_env,
    swap,
    updates,
    vscode,
)
from jetprep.core.services.detection.cuda import RESOURCE as CUDA_GATE
from jetprep.core.services.detection.cuda import probe_cuda

logger = logging.getLogger(__name__)

Ensure = Callable[[RunConfig, ActionRunner], Outcome]
Probe = Callable[[RunConfig], ProbeResult]


@dataclass(frozen=True)
class Operation:
    """One convergence step of the sequence."""

    resource: str
    ensure: Ensure
    probe: Probe | None = None


PRE_GATE: list[Operation] = [
    Operation(swap.RESOURCE, swap.ensure, swap.probe),
    Operation(updates.RESOURCE, updates.ensure),
    Operation(packages.RESOURCE, packages.ensure, packages.probe),
    Operation(jetson_stats.RESOURCE, jetson_stats.ensure, jetson_stats.probe),
    Operation(vscode.RESOURCE, vscode.ensure, vscode.probe),
]

GATED: list[Operation] = [
    Operation(cuda_link.RESOURCE, cuda_link.ensure, cuda_link.probe),
    Operation(profile_env.RESOURCE, profile_env.ensure, profile_env.probe),
]


@dataclass
class ConvergeReport:
    """Result of one pass over the sequence."""

    operation_id: str = ""
    dry_run: bool = False
    outcomes: list[Outcome] = field(default_factory=list)

    def _count(self, status: str) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def satisfied(self) -> int:
        return self._count("satisfied")

    @property
    def changed(self) -> int:
        return self._count("changed")

    @property
    def skipped(self) -> int:
        return self._count("skipped")

    @property
    def failed(self) -> int:
        return self._count("failed")

    @property
    def actions_total(self) -> int:
        return sum(len(o.receipts) for o in self.outcomes)

    @property
    def all_ok(self) -> bool:
        return self.failed == 0

    @property
    def status(self) -> str:
        if self.failed == 0:
            return "ok"
        if self.failed < self.total:
            return "partial"
        return "failed"

    def get(self, resource: str) -> Outcome | None:
        for outcome in self.outcomes:
            if outcome.resource == resource:
                return outcome
        return None

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "dry_run": self.dry_run,
            "status": self.status,
            "total": self.total,
            "satisfied": self.satisfied,
            "changed": self.changed,
            "skipped": self.skipped,
            "failed": self.failed,
            "outcomes": [o.model_dump(mode="json") for o in self.outcomes],
        }


def run_operation(op: Operation, config: RunConfig, runner: ActionRunner) -> Outcome:
    """Run one operation, mapping the error taxonomy onto an Outcome."""
    try:
        return op.ensure(config, runner)
    except ProbeError as e:
        runner.warn(f"{op.resource}: cannot determine state ({e.message}); skipping")
        return Outcome.skipped(op.resource, f"cannot determine state: {e.message}")
    except NotFoundError as e:
        runner.warn(f"{op.resource}: {e}")
        return Outcome.skipped(op.resource, f"cannot satisfy: {e}")
    except ActionError as e:
        return Outcome.failed(op.resource, str(e), e.receipts)


def check_gate(config: RunConfig) -> tuple[bool, str]:
    """Whether the CUDA toolchain is present, with the reason."""
    try:
        gate = probe_cuda(config)
    except ProbeError as e:
        return False, f"cannot determine CUDA presence ({e.message})"
    return gate.satisfied, gate.detail


def converge(config: RunConfig, runner: ActionRunner) -> ConvergeReport:
    """Run the whole sequence once."""
    report = ConvergeReport(
        operation_id=generate_operation_id(),
        dry_run=runner.dry_run,
    )

    for op in PRE_GATE:
        report.outcomes.append(_logged(run_operation(op, config, runner)))

    present, reason = check_gate(config)
    if present:
        runner.info(reason)
        for op in GATED:
            report.outcomes.append(_logged(run_operation(op, config, runner)))
    else:
        runner.warn(f"{reason}; skipping CUDA symlink and env configuration.")
        for op in GATED:
            report.outcomes.append(
                _logged(Outcome.skipped(op.resource, f"gated on {CUDA_GATE}: {reason}"))
            )

    return report


def probe_all(config: RunConfig) -> list[ProbeResult]:
    """Run every probe without acting. ProbeErrors become unsatisfied results."""
    results: list[ProbeResult] = []
    probes: list[tuple[str, Probe]] = [
        (op.resource, op.probe) for op in PRE_GATE if op.probe is not None
    ]
    probes.append((CUDA_GATE, probe_cuda))
    probes += [(op.resource, op.probe) for op in GATED if op.probe is not None]

    for resource, probe in probes:
        try:
            results.append(probe(config))
        except ProbeError as e:
            results.append(ProbeResult(
                resource=resource,
                satisfied=False,
                detail=f"cannot determine state: {e.message}",
            ))
    return results


def _logged(outcome: Outcome) -> Outcome:
    status_marker = {"satisfied": "✓", "changed": "✚", "skipped": "⊘"}.get(outcome.status, "✗")
    logger.info("%s %s → %s", status_marker, outcome.resource, outcome.status)
    return outcome


def generate_operation_id() -> str:
    """Generate a unique operation ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"op-{now}-{short}"
