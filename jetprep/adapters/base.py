"""
Runner protocol — how an Action reaches the host.

Convergence operations never call subprocess for side effects. They
hand Actions to a Runner and read back Receipts; whatever goes wrong on
the host side is reported in the Receipt, not raised.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from jetprep.core.models.action import Action, Receipt


class Runner(ABC):
    """Executes Actions against the host and reports Receipts."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier stamped on every Receipt."""

    def validate(self, action: Action) -> tuple[bool, str]:
        """Pre-flight check, run before anything is announced.

        Returns ``(False, reason)`` to refuse the action.
        """
        if not action.argv or not action.argv[0]:
            return False, "Missing command"
        return True, ""

    @abstractmethod
    def execute(self, action: Action) -> Receipt:
        """Run ``action``. Must not raise; failures go in the Receipt."""
