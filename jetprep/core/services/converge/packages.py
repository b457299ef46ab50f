"""
Required package convergence.

Every package is probed on its own; the missing subset is installed
with a single ``apt-get install`` so dependency resolution runs once.
If apt applies only part of the batch the failure is reported as is;
the next run picks up whatever is still missing.
"""

from __future__ import annotations

from jetprep.core.engine.runner import ActionRunner
from jetprep.core.models.action import Action
from jetprep.core.models.config import RunConfig
from jetprep.core.models.outcome import Outcome, ProbeResult
from jetprep.core.services.detection.system_deps import check_system_deps

RESOURCE = "packages"


def probe(config: RunConfig) -> ProbeResult:
    deps = check_system_deps(config.required_packages)
    missing = deps["missing"]
    return ProbeResult(
        resource=RESOURCE,
        satisfied=not missing,
        observed=deps,
        desired=list(config.required_packages),
        detail=(
            "All required packages are already installed."
            if not missing
            else f"Missing packages: {' '.join(missing)}"
        ),
    )


def ensure(config: RunConfig, runner: ActionRunner) -> Outcome:
    runner.info("Checking required packages and collecting missing ones...")
    state = probe(config)
    deps = state.observed
    for pkg in config.required_packages:
        if pkg in deps["installed"]:
            runner.info(f"- {pkg}: already installed")
        else:
            runner.warn(f"- {pkg}: NOT installed")

    if state.satisfied:
        runner.info(state.detail)
        return Outcome.satisfied(state)

    missing = deps["missing"]
    runner.info(f"Installing missing packages: {' '.join(missing)}")
    receipts = runner.run_all([
        Action(
            id="packages:install",
            resource=RESOURCE,
            argv=["apt-get", "install", "-y", *missing],
            sudo=config.use_sudo,
        )
    ])
    return Outcome.changed(
        state, receipts, reason=f"installed {len(missing)} package(s)"
    )
