"""
Optional IDE component (Visual Studio Code).

Detected by any of: the ``code`` launcher on PATH, a dpkg package,
a snap. Otherwise the architecture-specific .deb for the configured
version is downloaded and installed through apt's local-file path.
"""

from __future__ import annotations

from jetprep.core.engine.runner import ActionRunner
from jetprep.core.models.action import Action
from jetprep.core.models.config import RunConfig
from jetprep.core.models.outcome import Outcome, ProbeResult
from jetprep.core.services.detection.heuristics import Check, first_match
from jetprep.core.services.detection.system_deps import (
    command_exists,
    is_pkg_installed,
    snap_installed,
)

RESOURCE = "vscode"


def checks(config: RunConfig) -> list[Check]:
    name = config.vscode_package
    return [
        ("launcher on PATH", lambda: command_exists(name)),
        ("dpkg package", lambda: is_pkg_installed(name)),
        ("snap package", lambda: snap_installed(name)),
    ]


def probe(config: RunConfig) -> ProbeResult:
    found = first_match(RESOURCE, checks(config))
    return ProbeResult(
        resource=RESOURCE,
        satisfied=found is not None,
        observed=found,
        desired=config.vscode_version,
        detail=(
            f"Visual Studio Code already installed ({found})"
            if found
            else "Visual Studio Code not installed"
        ),
    )


def ensure(config: RunConfig, runner: ActionRunner) -> Outcome:
    if not config.install_vscode:
        runner.info("VS Code installation not requested; skipping")
        return Outcome.skipped(RESOURCE, "VS Code installation disabled")

    state = probe(config)
    if state.satisfied:
        runner.info(f"{state.detail}; skipping installation")
        return Outcome.satisfied(state)

    deb = str(config.vscode_deb_path)
    runner.info(f"Downloading VS Code version: {config.vscode_version}")
    receipts = runner.run_all([
        Action(
            id="vscode:download",
            resource=RESOURCE,
            argv=["wget", "-N", "-O", deb, config.vscode_url],
        ),
        Action(
            id="vscode:install",
            resource=RESOURCE,
            argv=["apt", "install", "-y", deb],
            sudo=config.use_sudo,
        ),
    ])
    return Outcome.changed(
        state, receipts, reason=f"VS Code {config.vscode_version} ({config.vscode_arch}) installed"
    )
