"""
OR-combined presence heuristics.

A resource counts as present if any one check says so. Checks run in
the given order and the first true one wins; later checks are never
evaluated. A check that raises ProbeError is treated as "no answer":
if a later check says present, that wins; if none does, the error is
re-raised because the state could not be determined.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from jetprep.core.errors import ProbeError

logger = logging.getLogger(__name__)

Check = tuple[str, Callable[[], bool]]


def first_match(resource: str, checks: Sequence[Check]) -> str | None:
    """Return the label of the first check that reports present."""
    errors: list[ProbeError] = []
    for label, check in checks:
        try:
            if check():
                logger.debug("%s: detected via %s", resource, label)
                return label
        except ProbeError as e:
            logger.warning("%s: %s check failed: %s", resource, label, e.message)
            errors.append(e)

    if errors:
        raise ProbeError(resource, "; ".join(e.message for e in errors))
    return None
