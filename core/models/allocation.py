# ============================================================================
# ALLOCATION MODELS
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Core model - Scheduler-reported instance state
# PURPOSE: Typed view of dispatch handles, allocations and task states
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: DispatchHandle, TaskEvent, TaskState, Allocation, classify_instance
# DEPENDENCIES: pydantic
# ============================================================================
"""
Allocation Models

A dispatched instance is run by the scheduler as one or more allocations
(running units). Each allocation carries a map of task name -> TaskState.

Field aliases match the Nomad HTTP API (PascalCase), so allocation stubs
returned by GET /v1/job/<id>/allocations validate directly:

    Allocation.model_validate({"ID": "...", "TaskStates": {...}})

The raw document is kept on the model for post-mortem snapshots.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from core.contracts import InstanceState, TERMINAL_TASK_STATE


class DispatchHandle(BaseModel):
    """Identifier of one dispatched instance. Never reused across iterations."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    dispatched_job_id: str = Field(..., alias="DispatchedJobID", min_length=1)
    eval_id: Optional[str] = Field(default=None, alias="EvalID")

    def __str__(self) -> str:
        return self.dispatched_job_id


class TaskEvent(BaseModel):
    """One diagnostic event in a task's history."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str = Field(default="", alias="Type")
    display_message: str = Field(default="", alias="DisplayMessage")
    time: Optional[int] = Field(default=None, alias="Time")


class TaskState(BaseModel):
    """
    Lifecycle of the named task inside an allocation.

    state is "pending", "running" or "dead"; only "dead" is terminal.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    state: str = Field(default="pending", alias="State")
    failed: bool = Field(default=False, alias="Failed")
    events: List[TaskEvent] = Field(default_factory=list, alias="Events")

    @property
    def is_terminal(self) -> bool:
        return self.state == TERMINAL_TASK_STATE

    def event_messages(self) -> List[str]:
        """Display messages in chronological order."""
        return [event.display_message for event in self.events]


class Allocation(BaseModel):
    """A running unit of a dispatched instance."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., alias="ID")
    client_status: str = Field(default="", alias="ClientStatus")
    task_states: Dict[str, TaskState] = Field(default_factory=dict, alias="TaskStates")
    raw: Dict[str, Any] = Field(default_factory=dict, exclude=True)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Allocation":
        """Parse an allocation stub, keeping the raw document."""
        # Nomad sends null TaskStates until the client picks it up
        payload = dict(data)
        if payload.get("TaskStates") is None:
            payload["TaskStates"] = {}
        alloc = cls.model_validate(payload)
        alloc.raw = data
        return alloc

    def snapshot(self) -> Dict[str, Any]:
        """JSON-ready view for diagnostics."""
        if self.raw:
            return self.raw
        return self.model_dump(by_alias=True)


def classify_instance(allocations: List[Allocation], task_name: str) -> InstanceState:
    """
    Derive the instance state from the first allocation's task view.

    Only the first allocation is inspected: a dispatched instance runs a
    single copy of the task.
    """
    if not allocations:
        return InstanceState.PENDING

    state = allocations[0].task_states.get(task_name)
    if state is None:
        return InstanceState.UNKNOWN

    if not state.is_terminal:
        if state.state == "pending":
            return InstanceState.PENDING
        return InstanceState.RUNNING

    if state.failed:
        return InstanceState.FAILED
    return InstanceState.SUCCEEDED


__all__ = [
    "DispatchHandle",
    "TaskEvent",
    "TaskState",
    "Allocation",
    "classify_instance",
]
