"""
Recording runner — test double for every host command.

Records each Action it receives and returns success unless told
otherwise. Effects registered with ``on()`` let tests simulate what a
command would have done to the host (create the swap file, append to
the profile, mark a package installed) so probes see a converged host
on the next pass.
"""

from __future__ import annotations

from collections.abc import Callable

from jetprep.adapters.base import Runner
from jetprep.core.models.action import Action, Receipt

Effect = Callable[[Action], None]


def _matches(action: Action, key: str) -> bool:
    """Match by action id or by command prefix (without sudo)."""
    return action.id == key or " ".join(action.argv).startswith(key)


class RecordingRunner(Runner):
    """Recording runner for tests.

    By default, returns success for everything.
    """

    def __init__(
        self,
        runner_name: str = "recording",
        default_output: str = "",
    ):
        self._name = runner_name
        self._default_output = default_output
        self._failures: dict[str, tuple[str, int]] = {}
        self._effects: list[tuple[str, Effect]] = []
        self._call_log: list[Action] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[Action]:
        """All actions this runner has executed."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    @property
    def commands(self) -> list[str]:
        """Executed argv lists joined with spaces (no sudo prefix)."""
        return [" ".join(a.argv) for a in self._call_log]

    def set_failure(
        self,
        key: str,
        error: str = "Mock failure",
        return_code: int = 1,
    ) -> None:
        """Make actions matching ``key`` (id or command prefix) fail."""
        self._failures[key] = (error, return_code)

    def on(self, key: str, effect: Effect) -> None:
        """Run ``effect`` whenever an action matching ``key`` succeeds."""
        self._effects.append((key, effect))

    def execute(self, action: Action) -> Receipt:
        self._call_log.append(action)

        for key, (error, code) in self._failures.items():
            if _matches(action, key):
                return Receipt.failure(
                    runner=self._name,
                    action=action,
                    error=error,
                    return_code=code,
                )

        for key, effect in self._effects:
            if _matches(action, key):
                effect(action)

        return Receipt.success(
            runner=self._name,
            action=action,
            output=self._default_output,
        )

    def reset(self) -> None:
        """Clear call log, failures and effects."""
        self._call_log.clear()
        self._failures.clear()
        self._effects.clear()
