"""
Shell command runner — execute host commands.

The single place where mutating commands reach ``subprocess.run``.
No timeout is imposed: package installs and downloads run to
completion or fail on their own.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time

from jetprep.adapters.base import Runner
from jetprep.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)

# Keep receipts readable when apt prints thousands of lines
_OUTPUT_TAIL = 2000


def _feed(action: Action) -> dict:
    # Prompts from apt/dpkg get EOF instead of blocking on the terminal
    if action.stdin is None:
        return {"stdin": subprocess.DEVNULL}
    return {"input": action.stdin}


class ShellCommandRunner(Runner):
    """Run an Action's argv and capture its output.

    ``sudo`` is prepended only when the action asks for it and the
    process is not already root.
    """

    @property
    def name(self) -> str:
        return "shell"

    def validate(self, action: Action) -> tuple[bool, str]:
        ok, msg = super().validate(action)
        if not ok:
            return ok, msg
        if action.sudo and os.geteuid() != 0 and shutil.which("sudo") is None:
            return False, "Action needs root but sudo is not installed"
        return True, ""

    def _argv(self, action: Action) -> list[str]:
        if action.sudo and os.geteuid() != 0:
            return ["sudo", *action.sudo_flags, *action.argv]
        return list(action.argv)

    def execute(self, action: Action) -> Receipt:
        argv = self._argv(action)
        logger.debug("Executing: %s", argv)
        start = time.monotonic()

        try:
            result = subprocess.run(argv, capture_output=True, text=True, **_feed(action))
        except FileNotFoundError:
            return Receipt.failure(
                runner=self.name,
                action=action,
                error=f"Command not found: {argv[0]}",
                return_code=127,
            )
        except Exception as e:
            logger.exception("Subprocess error: %s", argv)
            return Receipt.failure(
                runner=self.name,
                action=action,
                error=f"Command execution error: {e}",
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        output = result.stdout.strip()[-_OUTPUT_TAIL:]
        stderr = result.stderr.strip()[-_OUTPUT_TAIL:]

        if result.returncode == 0:
            return Receipt.success(
                runner=self.name,
                action=action,
                output=output,
                duration_ms=elapsed_ms,
                metadata={"stderr": stderr} if stderr else {},
            )

        return Receipt.failure(
            runner=self.name,
            action=action,
            error=stderr or f"Command exited with code {result.returncode}",
            return_code=result.returncode,
            output=output,
            duration_ms=elapsed_ms,
        )
