"""
Shell profile lines exporting the CUDA toolchain.

Each line is matched exactly against the profile's existing lines: a
line differing only in case or trailing whitespace does not count, and
the canonical line is appended. After appending, the profile is
re-read to confirm; the caller's own environment is left alone since
only a fresh shell would pick the change up.
"""

from __future__ import annotations

from jetprep.core.engine.runner import ActionRunner
from jetprep.core.models.action import Action
from jetprep.core.models.config import RunConfig
from jetprep.core.models.outcome import Outcome, ProbeResult
from jetprep.core.services.detection.files import ends_with_newline, has_line

RESOURCE = "shell-profile"


def probe(config: RunConfig) -> ProbeResult:
    missing = [line for line in config.env_lines if not has_line(config.profile_path, line)]
    return ProbeResult(
        resource=RESOURCE,
        satisfied=not missing,
        observed=missing,
        desired=config.env_lines,
        detail=(
            f"All environment lines present in {config.profile_path}"
            if not missing
            else f"{len(missing)} line(s) missing from {config.profile_path}"
        ),
    )


def ensure(config: RunConfig, runner: ActionRunner) -> Outcome:
    profile = config.profile_path
    state = probe(config)
    missing: list[str] = state.observed

    for line in config.env_lines:
        if line not in missing:
            runner.info(f"Already present in {profile}: {line}")
    if state.satisfied:
        return Outcome.satisfied(state)

    # Don't glue the first new line onto an unterminated last line
    lead = "" if ends_with_newline(profile) else "\n"
    actions = []
    for i, line in enumerate(missing):
        runner.info(f"Adding to {profile}: {line}")
        actions.append(
            Action(
                id=f"profile:append:{i}",
                resource=RESOURCE,
                argv=["tee", "-a", str(profile)],
                stdin=(lead if i == 0 else "") + line + "\n",
            )
        )
    receipts = runner.run_all(actions)

    if runner.dry_run:
        return Outcome.changed(state, receipts, reason=f"would append {len(missing)} line(s)")

    # Refresh from the profile itself rather than patching os.environ
    refreshed = probe(config)
    if not refreshed.satisfied:
        return Outcome.failed(
            RESOURCE,
            f"{profile} re-read still lacks: {'; '.join(refreshed.observed)}",
            receipts,
        )
    return Outcome.changed(
        state,
        receipts,
        reason=f"appended {len(missing)} line(s); run 'source {profile}' or open a new shell",
        observed=[],
    )
