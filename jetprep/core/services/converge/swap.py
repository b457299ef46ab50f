"""
Swap file convergence.

Satisfied when the swap file exists and is at least the desired size.
A file that is too small is switched off and deleted before the new
one is allocated, so two swap files never coexist.
"""

from __future__ import annotations

import logging

from jetprep.core.engine.runner import ActionRunner
from jetprep.core.models.action import Action
from jetprep.core.models.config import RunConfig
from jetprep.core.models.outcome import Outcome, ProbeResult
from jetprep.core.services.detection.files import contains_text, file_size_gb

logger = logging.getLogger(__name__)

RESOURCE = "swap"


def probe(config: RunConfig) -> ProbeResult:
    path = config.swap_path
    exists = path.is_file()
    current_gb = file_size_gb(path)
    desired = config.swap_size_gb
    satisfied = exists and current_gb >= desired
    if not exists:
        detail = f"{path} does not exist"
    elif satisfied:
        detail = f"Existing {path} is {current_gb}GB (>= {desired}GB), no change needed"
    else:
        detail = f"Existing {path} is {current_gb}GB (< {desired}GB), recreating"
    return ProbeResult(
        resource=RESOURCE,
        satisfied=satisfied,
        observed=current_gb if exists else 0,
        desired=desired,
        detail=detail,
    )


def _create_actions(config: RunConfig) -> list[Action]:
    path = str(config.swap_path)
    sudo = config.use_sudo
    return [
        Action(id="swap:fallocate", resource=RESOURCE, sudo=sudo,
               argv=["fallocate", "-l", f"{config.swap_size_gb}G", path]),
        Action(id="swap:chmod", resource=RESOURCE, sudo=sudo,
               argv=["chmod", "600", path]),
        Action(id="swap:mkswap", resource=RESOURCE, sudo=sudo,
               argv=["mkswap", path]),
        Action(id="swap:swapon", resource=RESOURCE, sudo=sudo,
               argv=["swapon", path]),
    ]


def ensure(config: RunConfig, runner: ActionRunner) -> Outcome:
    if not config.manage_swap:
        runner.info("Skipping swap modification (--no-swap)")
        return Outcome.skipped(RESOURCE, "swap management disabled")

    state = probe(config)
    if state.satisfied:
        runner.info(state.detail)
        return Outcome.satisfied(state)

    runner.warn(state.detail)
    actions: list[Action] = []
    if config.swap_path.is_file():
        actions += [
            Action(id="swap:swapoff", resource=RESOURCE, sudo=config.use_sudo,
                   argv=["swapoff", "-a"]),
            Action(id="swap:remove", resource=RESOURCE, sudo=config.use_sudo,
                   argv=["rm", "-f", str(config.swap_path)]),
        ]
    actions += _create_actions(config)

    if contains_text(config.fstab_path, str(config.swap_path)):
        runner.info(f"{config.fstab_path} already mounts {config.swap_path}")
    else:
        actions.append(
            Action(id="swap:fstab", resource=RESOURCE, sudo=config.use_sudo,
                   argv=["tee", "-a", str(config.fstab_path)],
                   stdin=config.fstab_entry + "\n")
        )

    receipts = runner.run_all(actions)
    return Outcome.changed(
        state,
        receipts,
        reason=f"swap ensured ({config.swap_size_gb}GB)",
    )
