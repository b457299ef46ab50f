"""
Action runner — run or simulate one mutating command.

The runner holds the run mode. In dry-run it announces the command as
``DRY-RUN: ...`` and never touches the backend; in real mode it
announces ``+ ...`` and surfaces the exit status as a Receipt. It is
also the single output channel for probe verdicts, so action lines and
``[INFO]``/``[WARN]`` lines interleave in execution order.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable

from jetprep.adapters.base import Runner
from jetprep.core.errors import ActionError
from jetprep.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)

Announce = Callable[[str], None]


class ActionRunner:
    """Mode-aware front of a Runner backend.

    Args:
        backend: The runner that actually executes commands.
        dry_run: Simulate every action instead of executing it.
        announce: Where user-facing lines go. Defaults to the logger.
    """

    def __init__(
        self,
        backend: Runner,
        *,
        dry_run: bool = False,
        announce: Announce | None = None,
    ):
        self._backend = backend
        self._dry_run = dry_run
        self._announce = announce or logger.info

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    @property
    def backend(self) -> Runner:
        return self._backend

    # ── Verdict lines ───────────────────────────────────────────

    def info(self, message: str) -> None:
        logger.debug(message)
        self._announce(f"[INFO] {message}")

    def warn(self, message: str) -> None:
        logger.debug(message)
        self._announce(f"[WARN] {message}")

    # ── Actions ─────────────────────────────────────────────────

    def run(self, action: Action) -> Receipt:
        """Run one action. Never raises."""
        if self._dry_run:
            self._announce(f"DRY-RUN: {action.command}")
            return Receipt.skip(
                runner=self._backend.name,
                action=action,
                reason="would run",
                dry_run=True,
            )

        is_valid, error_msg = self._backend.validate(action)
        if not is_valid:
            return Receipt.failure(
                runner=self._backend.name,
                action=action,
                error=f"Validation failed: {error_msg}",
            )

        self._announce(f"+ {action.command}")
        start = time.monotonic()
        try:
            receipt = self._backend.execute(action)
        except Exception as e:
            # Backend broke its never-raise contract
            logger.error("Runner %s raised during execution: %s", self._backend.name, e)
            receipt = Receipt.failure(
                runner=self._backend.name,
                action=action,
                error=f"Unexpected error: {e}",
            )
        receipt.duration_ms = int((time.monotonic() - start) * 1000)

        if receipt.failed:
            logger.error("%s → exit %s: %s", action.command, receipt.return_code, receipt.error)
        return receipt

    def run_all(self, actions: Iterable[Action]) -> list[Receipt]:
        """Run actions in order, stopping at the first failure.

        Raises:
            ActionError: carrying every receipt so far, the failed one last.
        """
        receipts: list[Receipt] = []
        for action in actions:
            receipt = self.run(action)
            receipts.append(receipt)
            if receipt.failed:
                raise ActionError(receipts)
        return receipts
