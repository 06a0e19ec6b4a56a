# ============================================================================
# INSTANCE POLLER
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Core - Dispatch/poll state machine
# PURPOSE: Drive one dispatched instance from submission to a terminal state
# CREATED: 18 OCT 2026
# ============================================================================
"""
Instance Poller

One call = one dispatched instance:

    1. dispatch with {param_key: parameter}
    2. every poll interval, unless cancelled first:
       - query the instance's allocations (failure -> QueryError, no retry)
       - no allocation yet           -> keep polling
       - named task missing          -> diagnostics + StructuralError
       - task not dead               -> keep polling
       - task dead and failed        -> TaskFailedError with events
       - task dead and not failed    -> success

A dispatched instance runs a single copy of its task, so only the first
allocation is inspected; duplicates are not reconciled.

run_once() wraps the state machine and turns every harness error into
exactly one Outcome.
"""

import asyncio
import logging
import time
from typing import Callable, List, Optional, Set

from core.errors import (
    CancellationError,
    DispatchError,
    HarnessError,
    QueryError,
    StructuralError,
    TaskFailedError,
)
from core.logging import log_context
from core.models import Allocation, DispatchHandle, Outcome, classify_instance
from harness.cancellation import CancellationToken
from scheduler.base import SchedulerAPIError, SchedulerClient

logger = logging.getLogger(__name__)

DiagnosticCallback = Callable[[DispatchHandle, List[Allocation]], object]


class InstancePoller:
    """
    Dispatches instances of one parameterized job and waits for them.

    Stateless between calls; one poller is shared by all workers.
    """

    def __init__(
        self,
        client: SchedulerClient,
        job_id: str,
        task_name: str,
        param_key: str = "dur",
        poll_interval: float = 3.0,
        on_structural_error: Optional[DiagnosticCallback] = None,
    ):
        """
        Initialize poller.

        Args:
            client: Scheduler facade
            job_id: Parameterized job to dispatch
            task_name: Task whose state decides success or failure
            param_key: Dispatch meta key carrying the work parameter
            poll_interval: Seconds between state queries
            on_structural_error: Best-effort callback given the allocations
                when the named task is missing
        """
        self.client = client
        self.job_id = job_id
        self.task_name = task_name
        self.param_key = param_key
        self.poll_interval = poll_interval
        self._on_structural_error = on_structural_error
        self._pending_diagnostics: Set[asyncio.Future] = set()

    async def wait_for_completion(
        self,
        token: CancellationToken,
        parameter: str,
    ) -> DispatchHandle:
        """
        Dispatch one instance and poll it to a terminal state.

        Returns:
            Handle of the instance that succeeded

        Raises:
            CancellationError, DispatchError, QueryError, StructuralError,
            TaskFailedError
        """
        if token.cancelled:
            raise CancellationError(CancellationError.BEFORE_DISPATCH)

        try:
            handle = await self.client.dispatch_instance(
                self.job_id, {self.param_key: parameter}
            )
        except SchedulerAPIError as e:
            raise DispatchError(str(e)) from e

        dispatch_id = handle.dispatched_job_id
        with log_context(dispatch_id=dispatch_id):
            logger.debug(f"Dispatched {self.job_id} with {self.param_key}={parameter}")
            await self._poll(token, handle)
        return handle

    async def _poll(self, token: CancellationToken, handle: DispatchHandle) -> None:
        dispatch_id = handle.dispatched_job_id

        while True:
            if await token.sleep(self.poll_interval):
                raise CancellationError(CancellationError.WAITING, dispatch_id)

            try:
                allocations = await self.client.query_task_states(handle)
            except SchedulerAPIError as e:
                raise QueryError(dispatch_id, str(e)) from e

            logger.debug(
                f"Instance state: {classify_instance(allocations, self.task_name).value}"
            )

            if not allocations:
                continue

            task_state = allocations[0].task_states.get(self.task_name)
            if task_state is None:
                self._capture_diagnostics(handle, allocations)
                raise StructuralError(
                    self.task_name,
                    dispatch_id,
                    [alloc.snapshot() for alloc in allocations],
                )

            if not task_state.is_terminal:
                continue

            if task_state.failed:
                raise TaskFailedError(
                    self.task_name, dispatch_id, task_state.event_messages()
                )

            return

    def _capture_diagnostics(
        self,
        handle: DispatchHandle,
        allocations: List[Allocation],
    ) -> None:
        """Run the diagnostic callback off the event loop, fire and forget."""
        if self._on_structural_error is None:
            return

        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, self._on_structural_error, handle, allocations)
        self._pending_diagnostics.add(future)

        def _done(fut: asyncio.Future) -> None:
            self._pending_diagnostics.discard(fut)
            if fut.cancelled():
                return
            exc = fut.exception()
            if exc is not None:
                logger.warning(f"Diagnostic capture failed for {handle}: {exc}")

        future.add_done_callback(_done)

    async def drain_diagnostics(self) -> None:
        """Wait for outstanding diagnostic writes."""
        if self._pending_diagnostics:
            await asyncio.gather(*self._pending_diagnostics, return_exceptions=True)

    async def run_once(
        self,
        token: CancellationToken,
        index: int,
        parameter: str,
        worker_id: Optional[str] = None,
    ) -> Outcome:
        """
        One dispatch-and-wait cycle, reported as an Outcome.

        Harness errors become failed or cancelled outcomes; anything else
        propagates to the worker.
        """
        start = time.monotonic()

        try:
            handle = await self.wait_for_completion(token, parameter)
        except CancellationError as e:
            return Outcome.from_error(
                index,
                parameter,
                e,
                cancelled=True,
                dispatch_id=e.dispatch_id,
                worker_id=worker_id,
                duration_ms=_elapsed_ms(start),
            )
        except HarnessError as e:
            return Outcome.from_error(
                index,
                parameter,
                e,
                dispatch_id=getattr(e, "dispatch_id", None),
                worker_id=worker_id,
                duration_ms=_elapsed_ms(start),
            )

        return Outcome.success(
            index,
            parameter,
            dispatch_id=handle.dispatched_job_id,
            worker_id=worker_id,
            duration_ms=_elapsed_ms(start),
        )


def _elapsed_ms(start: float) -> int:
    return max(0, int((time.monotonic() - start) * 1000))


__all__ = [
    "DiagnosticCallback",
    "InstancePoller",
]
