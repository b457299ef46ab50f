"""jetson-stats (``jtop``) board monitor."""

from __future__ import annotations

from jetprep.core.engine.runner import ActionRunner
from jetprep.core.models.action import Action
from jetprep.core.models.config import RunConfig
from jetprep.core.models.outcome import Outcome, ProbeResult
from jetprep.core.services.detection.heuristics import Check, first_match
from jetprep.core.services.detection.system_deps import command_exists, pip_package_installed

RESOURCE = "jetson-stats"
PIP_PACKAGE = "jetson-stats"


def checks() -> list[Check]:
    return [
        ("pip package", lambda: pip_package_installed(PIP_PACKAGE)),
        ("jtop command", lambda: command_exists("jtop")),
    ]


def probe(config: RunConfig) -> ProbeResult:
    found = first_match(RESOURCE, checks())
    return ProbeResult(
        resource=RESOURCE,
        satisfied=found is not None,
        observed=found,
        detail=f"jetson-stats available ({found})" if found else "jetson-stats not installed",
    )


def ensure(config: RunConfig, runner: ActionRunner) -> Outcome:
    if not config.install_jetson_stats:
        runner.info("jetson-stats installation not requested; skipping")
        return Outcome.skipped(RESOURCE, "jetson-stats disabled")

    state = probe(config)
    if state.satisfied:
        runner.info(state.detail)
        return Outcome.satisfied(state)

    runner.warn(state.detail)
    receipts = runner.run_all([
        Action(
            id="jetson-stats:install",
            resource=RESOURCE,
            argv=["pip3", "install", "-U", PIP_PACKAGE],
            sudo=config.use_sudo,
            sudo_flags=["-H"],
        )
    ])
    return Outcome.changed(
        state, receipts, reason="jetson-stats installed; run 'sudo jtop' to monitor the device"
    )
