# ============================================================================
# MODELS MODULE
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Model exports
# PURPOSE: Central export point for all Pydantic models
# LAST_REVIEWED: 18 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

All Pydantic models for the load harness:
    - allocation: what the scheduler reports about a dispatched instance
    - outcome: what the harness reports about each attempt and the run
"""

from core.models.allocation import (
    DispatchHandle,
    TaskEvent,
    TaskState,
    Allocation,
    classify_instance,
)
from core.models.outcome import Outcome, RunSummary, format_duration

__all__ = [
    # Scheduler view
    "DispatchHandle",
    "TaskEvent",
    "TaskState",
    "Allocation",
    "classify_instance",
    # Results
    "Outcome",
    "RunSummary",
    "format_duration",
]
