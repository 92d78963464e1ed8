"""Batch processing and liveness tracking."""

from .agent import PushoverAgent
from .models import BatchRunResult, EventOutcome
from .status import AgentStatus, StatusFileError, load_status, save_status

__all__ = [
    "PushoverAgent",
    "BatchRunResult",
    "EventOutcome",
    "AgentStatus",
    "StatusFileError",
    "load_status",
    "save_status",
]
