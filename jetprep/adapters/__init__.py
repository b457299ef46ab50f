"""Runners — how actions reach the host.

Public re-exports for convenient access.
"""

from jetprep.adapters.base import Runner
from jetprep.adapters.mock import RecordingRunner
from jetprep.adapters.shell.command import ShellCommandRunner

__all__ = [
    "RecordingRunner",
    "Runner",
    "ShellCommandRunner",
]
