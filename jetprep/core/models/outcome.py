"""
Probe and outcome models — what was observed, what was done.

A ProbeResult is computed fresh on every call and never cached: the
host may have changed between runs. An Outcome is the per-operation
line of the final report. Outcomes are never retried.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from jetprep.core.models.action import Receipt

OutcomeStatus = Literal["satisfied", "changed", "skipped", "failed"]


class ProbeResult(BaseModel):
    """Observed state of one resource."""

    resource: str
    satisfied: bool
    observed: Any = None
    desired: Any = None
    detail: str = ""


class Outcome(BaseModel):
    """Result of one convergence operation."""

    resource: str
    status: OutcomeStatus
    reason: str = ""
    observed: Any = None
    desired: Any = None
    receipts: list[Receipt] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status != "failed"

    @property
    def dry_run(self) -> bool:
        """True when every action of this outcome was only simulated."""
        return bool(self.receipts) and all(r.dry_run for r in self.receipts)

    @classmethod
    def satisfied(cls, probe: ProbeResult, reason: str = "") -> Outcome:
        return cls(
            resource=probe.resource,
            status="satisfied",
            reason=reason or probe.detail,
            observed=probe.observed,
            desired=probe.desired,
        )

    @classmethod
    def changed(
        cls,
        probe: ProbeResult,
        receipts: list[Receipt],
        reason: str = "",
        **kwargs: Any,
    ) -> Outcome:
        data: dict[str, Any] = {
            "observed": probe.observed,
            "desired": probe.desired,
        }
        data.update(kwargs)
        return cls(
            resource=probe.resource,
            status="changed",
            reason=reason,
            receipts=receipts,
            **data,
        )

    @classmethod
    def skipped(cls, resource: str, reason: str) -> Outcome:
        return cls(resource=resource, status="skipped", reason=reason)

    @classmethod
    def failed(
        cls,
        resource: str,
        reason: str,
        receipts: list[Receipt] | None = None,
    ) -> Outcome:
        return cls(
            resource=resource,
            status="failed",
            reason=reason,
            receipts=receipts or [],
        )
