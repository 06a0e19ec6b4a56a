# ============================================================================
# HARNESS ERRORS
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Core - Error taxonomy
# PURPOSE: One exception class per failure kind an iteration can end with
# CREATED: 18 OCT 2026
# ============================================================================
"""
Harness Errors

InitError is fatal and surfaces to the process boundary before any worker
starts. Every other HarnessError is local to a single dispatch iteration:
the poller converts it into exactly one Outcome and the worker moves on.
"""

from typing import Any, Dict, List, Optional


class HarnessError(Exception):
    """Base exception for harness errors."""
    pass


class InitError(HarnessError):
    """Raised when startup fails (client, job read, parse, register)."""

    def __init__(self, stage: str, message: str):
        self.stage = stage
        super().__init__(f"error {stage}: {message}")


class DispatchError(HarnessError):
    """Raised when the scheduler rejects a dispatch."""

    def __init__(self, message: str):
        super().__init__(f"failed to dispatch job: {message}")


class QueryError(HarnessError):
    """Raised when polling an instance's allocations fails."""

    def __init__(self, dispatch_id: str, message: str):
        self.dispatch_id = dispatch_id
        super().__init__(
            f"unexpected error fetching allocation from dispatch ID {dispatch_id}: {message}"
        )


class StructuralError(HarnessError):
    """Raised when the named task is missing from the instance's allocation."""

    def __init__(
        self,
        task_name: str,
        dispatch_id: str,
        allocations: Optional[List[Dict[str, Any]]] = None,
    ):
        self.task_name = task_name
        self.dispatch_id = dispatch_id
        self.allocations = allocations or []
        super().__init__(
            f"expected {task_name!r} task but none is found for dispatch ID {dispatch_id}"
        )


class TaskFailedError(HarnessError):
    """Raised when the named task reached a terminal failed state."""

    def __init__(self, task_name: str, dispatch_id: str, events: List[str]):
        self.task_name = task_name
        self.dispatch_id = dispatch_id
        self.events = list(events)
        msg = "".join(f"<{event}> " for event in self.events)
        super().__init__(f"{task_name} task failed {dispatch_id}: events: {msg}")


class CancellationError(HarnessError):
    """
    Raised when the run was cancelled during an iteration.

    phase is "before_dispatch" when nothing was submitted, or "waiting"
    when an instance was dispatched and abandoned mid-poll.
    """

    BEFORE_DISPATCH = "before_dispatch"
    WAITING = "waiting"

    def __init__(self, phase: str, dispatch_id: Optional[str] = None):
        self.phase = phase
        self.dispatch_id = dispatch_id
        if dispatch_id:
            super().__init__(f"cancelled while waiting on {dispatch_id}")
        else:
            super().__init__("cancelled before dispatch")


class ChannelClosedError(HarnessError):
    """Raised on send-after-close or a second close of the outcome channel."""
    pass


__all__ = [
    "HarnessError",
    "InitError",
    "DispatchError",
    "QueryError",
    "StructuralError",
    "TaskFailedError",
    "CancellationError",
    "ChannelClosedError",
]
