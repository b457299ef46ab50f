"""
Generic CUDA path: ``/usr/local/cuda -> /usr/local/cuda-<v>``.

Anything already at the generic path counts as satisfied and is never
replaced, whatever it points to.
"""

from __future__ import annotations

from jetprep.core.engine.runner import ActionRunner
from jetprep.core.errors import NotFoundError
from jetprep.core.models.action import Action
from jetprep.core.models.config import RunConfig
from jetprep.core.models.outcome import Outcome, ProbeResult
from jetprep.core.services.detection.files import path_exists

RESOURCE = "cuda-symlink"


def probe(config: RunConfig) -> ProbeResult:
    link = config.cuda_link
    exists = path_exists(link)
    return ProbeResult(
        resource=RESOURCE,
        satisfied=exists,
        observed=str(link) if exists else None,
        desired=str(config.cuda_source),
        detail=f"{link} already exists; skipping symlink" if exists else f"{link} missing",
    )


def ensure(config: RunConfig, runner: ActionRunner) -> Outcome:
    state = probe(config)
    if state.satisfied:
        runner.info(state.detail)
        return Outcome.satisfied(state)

    source = config.cuda_source
    if not source.is_dir():
        raise NotFoundError(f"{source} not installed; cannot create symlink")

    runner.info(f"Creating {config.cuda_link} -> {source} symlink")
    receipts = runner.run_all([
        Action(
            id="cuda:symlink",
            resource=RESOURCE,
            argv=["ln", "-s", str(source), str(config.cuda_link)],
            sudo=config.use_sudo,
        )
    ])
    return Outcome.changed(state, receipts, reason=f"{config.cuda_link} -> {source}")
