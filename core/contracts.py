# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Foundation - Core enums
# PURPOSE: Instance and outcome status enums shared by poller and aggregator
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: InstanceState, OutcomeStatus, TERMINAL_TASK_STATE
# DEPENDENCIES: enum
# ============================================================================
"""
Base contracts for the dispatch load harness.

InstanceState is derived each poll tick from the scheduler's per-task view
of an instance, not from the coarse allocation client status: the task
view is what separates "not yet placed" from "failed with events".
"""

from enum import Enum


# Nomad task lifecycle: pending -> running -> dead
TERMINAL_TASK_STATE = "dead"


# ============================================================================
# STATUS ENUMS
# ============================================================================

class InstanceState(str, Enum):
    """
    Dispatched instance states, as seen by the poller.

    State transitions:
        PENDING -> RUNNING -> SUCCEEDED
                           -> FAILED
        UNKNOWN (named task missing from the allocation)
    """
    PENDING = "pending"          # No allocation yet, or task not started
    RUNNING = "running"          # Task placed and not dead
    SUCCEEDED = "succeeded"      # Task dead, not failed
    FAILED = "failed"            # Task dead and failed
    UNKNOWN = "unknown"          # Structural anomaly

    def is_terminal(self) -> bool:
        """Check if this is a terminal state (no further transitions)."""
        return self in (InstanceState.SUCCEEDED, InstanceState.FAILED)


class OutcomeStatus(str, Enum):
    """
    Result of one dispatch-and-wait cycle.

    CANCELLED is tallied separately from FAILED.
    """
    OK = "ok"
    FAILED = "failed"
    CANCELLED = "cancelled"


__all__ = [
    "TERMINAL_TASK_STATE",
    "InstanceState",
    "OutcomeStatus",
]
