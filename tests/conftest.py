# ============================================================================
# TEST FIXTURES
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Tests - Shared fixtures
# PURPOSE: Deterministic in-memory scheduler for poller/pool/scenario tests
# CREATED: 18 OCT 2026
# ============================================================================
"""
Shared fixtures.

FakeScheduler plays back a plan per dispatch. A plan is chosen by a
`script(parameter, nth)` callable, where nth is the 1-based count of
dispatches seen so far with that parameter (i.e. the worker's iteration
number when each worker has a distinct parameter).

Plans:
    "ok"              task dead, not failed
    "dispatch_error"  dispatch rejected
    "query_error"     allocation query fails
    "missing_task"    allocation without the named task
    "never"           task keeps running
    ("failed", [...]) task dead and failed with these event messages

Every plan except "never" reports no allocations on the ticks before
`ticks_to_finish`, then its terminal state.
"""

from collections import Counter
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import pytest

from core.models import Allocation, DispatchHandle, TaskEvent, TaskState
from scheduler.base import SchedulerAPIError, SchedulerClient

Plan = Union[str, Tuple[str, List[str]]]


class FakeScheduler(SchedulerClient):
    """In-memory SchedulerClient driven by a per-dispatch plan."""

    def __init__(
        self,
        script: Optional[Callable[[str, int], Plan]] = None,
        ticks_to_finish: int = 2,
        task_name: str = "sleeper",
    ):
        self.script = script or (lambda parameter, nth: "ok")
        self.ticks_to_finish = ticks_to_finish
        self.task_name = task_name

        self.registered: List[Dict[str, Any]] = []
        self.dispatched: List[Tuple[str, Dict[str, str]]] = []
        self.queries: Counter = Counter()
        self.closed = False

        self._per_param: Counter = Counter()
        self._plans: Dict[str, Plan] = {}
        self.in_flight = 0
        self.max_in_flight = 0

    async def register_job(self, job: Dict[str, Any]) -> str:
        self.registered.append(job)
        return job.get("ID", "sleeper")

    async def dispatch_instance(self, job_id: str, parameters: Dict[str, str]) -> DispatchHandle:
        parameter = next(iter(parameters.values()))
        self._per_param[parameter] += 1
        plan = self.script(parameter, self._per_param[parameter])

        if plan == "dispatch_error":
            raise SchedulerAPIError("Unexpected response code: 500 (no such job)", status_code=500)

        dispatch_id = f"{job_id}/dispatch-{len(self.dispatched)}"
        self.dispatched.append((dispatch_id, dict(parameters)))
        self._plans[dispatch_id] = plan

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        return DispatchHandle(dispatched_job_id=dispatch_id)

    def _finish(self, dispatch_id: str) -> None:
        self.in_flight -= 1

    async def query_task_states(self, handle: DispatchHandle) -> List[Allocation]:
        dispatch_id = handle.dispatched_job_id
        self.queries[dispatch_id] += 1
        plan = self._plans[dispatch_id]

        if plan == "query_error":
            self._finish(dispatch_id)
            raise SchedulerAPIError("error calling GET: connection refused")

        if plan == "never":
            return [self._alloc(dispatch_id, TaskState(state="running"))]

        if self.queries[dispatch_id] < self.ticks_to_finish:
            return []

        self._finish(dispatch_id)

        if plan == "missing_task":
            return [
                Allocation(
                    id=f"alloc-{dispatch_id.rsplit('-', 1)[-1]}",
                    client_status="running",
                    task_states={"sidecar": TaskState(state="running")},
                )
            ]

        if isinstance(plan, tuple) and plan[0] == "failed":
            events = [TaskEvent(type="Driver", display_message=msg) for msg in plan[1]]
            return [self._alloc(dispatch_id, TaskState(state="dead", failed=True, events=events))]

        return [self._alloc(dispatch_id, TaskState(state="dead", failed=False))]

    def _alloc(self, dispatch_id: str, state: TaskState) -> Allocation:
        return Allocation(
            id=f"alloc-{dispatch_id.rsplit('-', 1)[-1]}",
            client_status="complete" if state.is_terminal else "running",
            task_states={self.task_name: state},
        )

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def make_scheduler():
    """Factory for FakeScheduler instances."""
    def _make(
        script: Optional[Callable[[str, int], Plan]] = None,
        ticks_to_finish: int = 2,
    ) -> FakeScheduler:
        return FakeScheduler(script=script, ticks_to_finish=ticks_to_finish)
    return _make
