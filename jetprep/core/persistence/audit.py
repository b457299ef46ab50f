"""
Run history — one NDJSON line per real converge or patch attempt.

The ledger only records what happened. Nothing reads it back to decide
what to do next; probes always look at the host itself.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    return datetime.now(UTC).isoformat(timespec="seconds")


class AuditEntry(BaseModel):
    """One recorded run."""

    timestamp: str = Field(default_factory=_utc_now)
    operation_id: str = ""
    operation_type: str = ""       # converge, patch
    status: str = ""               # ok, partial, failed

    actions_total: int = 0
    changed: int = 0
    satisfied: int = 0
    skipped: int = 0
    failed: int = 0
    resources: dict[str, str] = Field(default_factory=dict)   # resource -> outcome status

    errors: list[str] = Field(default_factory=list)
    context: dict[str, Any] = Field(default_factory=dict)

    @property
    def summary(self) -> str:
        return f"changed={self.changed} failed={self.failed}"


class AuditLedger:
    """Append-only NDJSON file of AuditEntry records."""

    def __init__(self, path: Path):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def append(self, entry: AuditEntry) -> bool:
        """Add ``entry`` as one line. Returns False instead of raising."""
        line = entry.model_dump_json() + "\n"
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line)
        except OSError as e:
            logger.error("Cannot append to audit ledger %s: %s", self._path, e)
            return False
        logger.debug("Recorded %s %s in %s", entry.operation_type, entry.operation_id, self._path)
        return True

    def entries(self) -> list[AuditEntry]:
        """Every readable entry, oldest first. Damaged lines are skipped."""
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.error("Cannot read audit ledger %s: %s", self._path, e)
            return []

        result: list[AuditEntry] = []
        for number, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                result.append(AuditEntry.model_validate(json.loads(line)))
            except (ValueError, ValidationError) as e:
                logger.warning("%s:%d: skipping damaged entry (%s)", self._path, number, e)
        return result

    def tail(self, n: int = 20) -> list[AuditEntry]:
        """The last ``n`` entries, oldest first."""
        return self.entries()[-n:] if n > 0 else []
