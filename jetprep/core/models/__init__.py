"""
Domain models — Pydantic types for jetprep.

All models are re-exported here for convenient access:

    from jetprep.core.models import Action, Receipt, Outcome, RunConfig
"""

from jetprep.core.models.action import Action, Receipt
from jetprep.core.models.config import RunConfig
from jetprep.core.models.outcome import Outcome, ProbeResult

__all__ = [
    # action.py
    "Action",
    # outcome.py
    "Outcome",
    "ProbeResult",
    "Receipt",
    # config.py
    "RunConfig",
]
