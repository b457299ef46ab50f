"""
Action and Receipt models — the execution contract.

Actions represent mutating commands. Receipts represent their results.
This is the I/O contract between convergence operations and runners:
operations build Actions, runners return Receipts. Never exceptions.
"""

from __future__ import annotations

import shlex
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Action(BaseModel):
    """A single mutating command against the host.

    ``argv`` is never passed through a shell. Text that would otherwise be
    piped in (``echo ... | tee -a FILE``) goes in ``stdin``.
    """

    id: str                          # e.g. "swap:fallocate"
    resource: str                    # owning convergence operation
    argv: list[str]
    sudo: bool = False               # prefix with sudo when not root
    sudo_flags: list[str] = Field(default_factory=list)
    stdin: str | None = None

    @property
    def command(self) -> str:
        """Printable form of the command, as the operator would type it."""
        parts = (["sudo", *self.sudo_flags] if self.sudo else []) + self.argv
        text = shlex.join(parts)
        if self.stdin is not None:
            data = self.stdin.rstrip("\n")
            text += f" <<< {shlex.quote(data)}"
        return text


ReceiptStatus = Literal["ok", "skipped", "failed"]


class Receipt(BaseModel):
    """What happened to one Action, whether executed or only simulated.

    ``command`` is the printable command line as announced, so a report
    can be read without the Action that produced it.
    """

    runner: str
    action_id: str
    command: str = ""
    status: ReceiptStatus = "ok"
    dry_run: bool = False

    return_code: int | None = None
    output: str = ""                 # stdout tail, or the skip reason
    error: str | None = None         # stderr tail or failure description

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def _for(cls, runner: str, action: Action, status: ReceiptStatus, **fields: Any) -> Receipt:
        return cls(
            runner=runner,
            action_id=action.id,
            command=action.command,
            status=status,
            **fields,
        )

    @classmethod
    def success(cls, runner: str, action: Action, output: str = "", **fields: Any) -> Receipt:
        fields.setdefault("return_code", 0)
        return cls._for(runner, action, "ok", output=output, **fields)

    @classmethod
    def failure(cls, runner: str, action: Action, error: str, **fields: Any) -> Receipt:
        return cls._for(runner, action, "failed", error=error, **fields)

    @classmethod
    def skip(cls, runner: str, action: Action, reason: str = "", **fields: Any) -> Receipt:
        """Not executed; ``reason`` lands in ``output`` (dry-run: "would run")."""
        return cls._for(runner, action, "skipped", output=reason, **fields)
