"""System update phase: refresh indexes, upgrade, clean."""

from __future__ import annotations

from jetprep.core.engine.runner import ActionRunner
from jetprep.core.models.action import Action
from jetprep.core.models.config import RunConfig
from jetprep.core.models.outcome import Outcome, ProbeResult

RESOURCE = "system-update"

_STEPS: list[tuple[str, list[str]]] = [
    ("update", ["apt", "update"]),
    ("upgrade", ["apt", "upgrade", "-y", "-o", "Dpkg::Options::=--force-confold"]),
    ("autoremove", ["apt", "autoremove", "-y"]),
    ("autoclean", ["apt", "autoclean"]),
]


def ensure(config: RunConfig, runner: ActionRunner) -> Outcome:
    # Not probe-gated: an upgrade is always a delta against the mirror
    if not config.update_system:
        runner.info("Skipping system update/upgrade (--no-update)")
        return Outcome.skipped(RESOURCE, "update phase disabled")

    actions = [
        Action(id=f"apt:{step}", resource=RESOURCE, argv=argv, sudo=config.use_sudo)
        for step, argv in _STEPS
    ]
    receipts = runner.run_all(actions)
    state = ProbeResult(resource=RESOURCE, satisfied=False)
    return Outcome.changed(state, receipts, reason="system packages updated")
