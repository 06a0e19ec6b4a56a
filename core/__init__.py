# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Core module initialization
# PURPOSE: Export core contracts, errors, and models
# LAST_REVIEWED: 18 OCT 2026
# ============================================================================

from core.contracts import InstanceState, OutcomeStatus
from core.errors import (
    HarnessError,
    InitError,
    DispatchError,
    QueryError,
    StructuralError,
    TaskFailedError,
    CancellationError,
    ChannelClosedError,
)
from core.models import (
    DispatchHandle,
    TaskEvent,
    TaskState,
    Allocation,
    Outcome,
    RunSummary,
)

__all__ = [
    # Enums
    "InstanceState",
    "OutcomeStatus",
    # Errors
    "HarnessError",
    "InitError",
    "DispatchError",
    "QueryError",
    "StructuralError",
    "TaskFailedError",
    "CancellationError",
    "ChannelClosedError",
    # Models
    "DispatchHandle",
    "TaskEvent",
    "TaskState",
    "Allocation",
    "Outcome",
    "RunSummary",
]
