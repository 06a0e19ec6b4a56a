# ============================================================================
# INSTANCE POLLER TESTS
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Tests - Dispatch/poll state machine
# PURPOSE: Verify every way one dispatch-and-wait cycle can end
# CREATED: 18 OCT 2026
# ============================================================================
"""
Instance Poller Tests

Covers:
1. Success after a few empty polls
2. Dispatch and query failures (no retry)
3. Missing task -> StructuralError + best-effort diagnostics
4. Failed task -> events in the error text
5. Cancellation before dispatch and while waiting

Run with:
    pytest tests/test_poller.py -v
"""

import asyncio
import logging
from unittest.mock import MagicMock

import pytest

from core.contracts import OutcomeStatus
from core.errors import (
    CancellationError,
    DispatchError,
    QueryError,
    StructuralError,
    TaskFailedError,
)
from core.models import DispatchHandle
from harness.cancellation import CancellationToken
from harness.poller import InstancePoller


def _poller(scheduler, **kwargs):
    kwargs.setdefault("poll_interval", 0.01)
    return InstancePoller(scheduler, job_id="sleeper", task_name="sleeper", **kwargs)


# ============================================================================
# WAIT FOR COMPLETION
# ============================================================================

class TestWaitForCompletion:
    """Tests for InstancePoller.wait_for_completion()."""

    def test_success_after_empty_polls(self, make_scheduler):
        scheduler = make_scheduler(ticks_to_finish=3)
        poller = _poller(scheduler)

        async def run_test():
            token = CancellationToken()
            return await poller.wait_for_completion(token, "2")

        handle = asyncio.run(run_test())

        assert isinstance(handle, DispatchHandle)
        assert scheduler.dispatched == [(handle.dispatched_job_id, {"dur": "2"})]
        assert scheduler.queries[handle.dispatched_job_id] == 3

    def test_custom_param_key(self, make_scheduler):
        scheduler = make_scheduler()
        poller = _poller(scheduler, param_key="seconds")

        async def run_test():
            await poller.wait_for_completion(CancellationToken(), "1")

        asyncio.run(run_test())

        assert scheduler.dispatched[0][1] == {"seconds": "1"}

    def test_dispatch_failure(self, make_scheduler):
        scheduler = make_scheduler(script=lambda p, n: "dispatch_error")
        poller = _poller(scheduler)

        async def run_test():
            await poller.wait_for_completion(CancellationToken(), "1")

        with pytest.raises(DispatchError) as exc_info:
            asyncio.run(run_test())

        assert "Unexpected response code: 500" in str(exc_info.value)
        assert scheduler.dispatched == []

    def test_query_failure_not_retried(self, make_scheduler):
        scheduler = make_scheduler(script=lambda p, n: "query_error")
        poller = _poller(scheduler)

        async def run_test():
            await poller.wait_for_completion(CancellationToken(), "1")

        with pytest.raises(QueryError) as exc_info:
            asyncio.run(run_test())

        dispatch_id = scheduler.dispatched[0][0]
        assert exc_info.value.dispatch_id == dispatch_id
        assert scheduler.queries[dispatch_id] == 1

    def test_failed_task_reports_events(self, make_scheduler):
        scheduler = make_scheduler(script=lambda p, n: ("failed", ["oom", "killed"]))
        poller = _poller(scheduler)

        async def run_test():
            await poller.wait_for_completion(CancellationToken(), "1")

        with pytest.raises(TaskFailedError) as exc_info:
            asyncio.run(run_test())

        assert exc_info.value.events == ["oom", "killed"]
        assert str(exc_info.value).endswith("events: <oom> <killed> ")

    def test_missing_task_is_structural(self, make_scheduler):
        scheduler = make_scheduler(script=lambda p, n: "missing_task")
        poller = _poller(scheduler)

        async def run_test():
            await poller.wait_for_completion(CancellationToken(), "1")

        with pytest.raises(StructuralError) as exc_info:
            asyncio.run(run_test())

        assert "expected 'sleeper' task but none is found" in str(exc_info.value)
        assert exc_info.value.allocations[0]["TaskStates"].keys() == {"sidecar"}


# ============================================================================
# DIAGNOSTICS
# ============================================================================

class TestDiagnostics:
    """The diagnostic callback is best effort and off the outcome path."""

    def test_callback_receives_allocations(self, make_scheduler):
        scheduler = make_scheduler(script=lambda p, n: "missing_task")
        callback = MagicMock(return_value=None)
        poller = _poller(scheduler, on_structural_error=callback)

        async def run_test():
            outcome = await poller.run_once(CancellationToken(), 0, "1")
            await poller.drain_diagnostics()
            return outcome

        outcome = asyncio.run(run_test())

        assert outcome.error_kind == "StructuralError"
        callback.assert_called_once()
        handle, allocations = callback.call_args.args
        assert handle.dispatched_job_id == scheduler.dispatched[0][0]
        assert "sidecar" in allocations[0].task_states

    def test_failing_callback_does_not_mask_error(self, make_scheduler, caplog):
        scheduler = make_scheduler(script=lambda p, n: "missing_task")
        callback = MagicMock(side_effect=OSError("disk full"))
        poller = _poller(scheduler, on_structural_error=callback)

        async def run_test():
            outcome = await poller.run_once(CancellationToken(), 0, "1")
            await poller.drain_diagnostics()
            return outcome

        with caplog.at_level(logging.WARNING, logger="harness.poller"):
            outcome = asyncio.run(run_test())

        assert outcome.error_kind == "StructuralError"
        assert "Diagnostic capture failed" in caplog.text
        assert "disk full" in caplog.text

    def test_no_callback_for_other_failures(self, make_scheduler):
        scheduler = make_scheduler(script=lambda p, n: ("failed", ["oom"]))
        callback = MagicMock()
        poller = _poller(scheduler, on_structural_error=callback)

        async def run_test():
            await poller.run_once(CancellationToken(), 0, "1")
            await poller.drain_diagnostics()

        asyncio.run(run_test())

        callback.assert_not_called()


# ============================================================================
# CANCELLATION
# ============================================================================

class TestCancellation:
    """Cancellation is observed before dispatch and between polls."""

    def test_cancelled_before_dispatch(self, make_scheduler):
        scheduler = make_scheduler()
        poller = _poller(scheduler)

        async def run_test():
            token = CancellationToken()
            token.cancel("test")
            return await poller.run_once(token, 0, "1")

        outcome = asyncio.run(run_test())

        assert outcome.status == OutcomeStatus.CANCELLED
        assert outcome.dispatch_id is None
        assert "before dispatch" in outcome.message
        assert scheduler.dispatched == []

    def test_cancelled_while_waiting_returns_promptly(self, make_scheduler):
        scheduler = make_scheduler(script=lambda p, n: "never")
        poller = _poller(scheduler, poll_interval=10.0)

        async def run_test():
            token = CancellationToken()
            task = asyncio.create_task(poller.run_once(token, 4, "2", worker_id="w-2"))
            await asyncio.sleep(0.05)
            token.cancel("test")
            return await asyncio.wait_for(task, timeout=2.0)

        outcome = asyncio.run(run_test())

        assert outcome.status == OutcomeStatus.CANCELLED
        assert outcome.error_kind == "CancellationError"
        assert outcome.dispatch_id == scheduler.dispatched[0][0]
        assert outcome.worker_id == "w-2"
        assert outcome.index == 4

    def test_cancel_during_polling_stops_queries(self, make_scheduler):
        scheduler = make_scheduler(script=lambda p, n: "never")
        poller = _poller(scheduler)

        async def run_test():
            token = CancellationToken()
            asyncio.get_running_loop().call_later(0.05, token.cancel)
            with pytest.raises(CancellationError) as exc_info:
                await poller.wait_for_completion(token, "1")
            return exc_info.value

        err = asyncio.run(run_test())

        assert err.phase == CancellationError.WAITING
        assert scheduler.queries[err.dispatch_id] >= 1


# ============================================================================
# RUN ONCE
# ============================================================================

class TestRunOnce:
    """run_once() turns each ending into exactly one Outcome."""

    def test_success_outcome(self, make_scheduler):
        scheduler = make_scheduler()
        poller = _poller(scheduler)

        async def run_test():
            return await poller.run_once(CancellationToken(), 7, "0", worker_id="w-3")

        outcome = asyncio.run(run_test())

        assert outcome.ok
        assert outcome.index == 7
        assert outcome.parameter == "0"
        assert outcome.worker_id == "w-3"
        assert outcome.dispatch_id == scheduler.dispatched[0][0]
        assert outcome.duration_ms >= 0

    @pytest.mark.parametrize("plan,kind", [
        ("dispatch_error", "DispatchError"),
        ("query_error", "QueryError"),
        ("missing_task", "StructuralError"),
        (("failed", ["boom"]), "TaskFailedError"),
    ])
    def test_failure_outcomes(self, make_scheduler, plan, kind):
        scheduler = make_scheduler(script=lambda p, n: plan)
        poller = _poller(scheduler)

        async def run_test():
            return await poller.run_once(CancellationToken(), 0, "1")

        outcome = asyncio.run(run_test())

        assert outcome.status == OutcomeStatus.FAILED
        assert outcome.error_kind == kind
        assert outcome.message

    def test_unexpected_errors_propagate(self):
        scheduler = MagicMock()

        async def dispatch(job_id, parameters):
            raise KeyError("surprise")

        scheduler.dispatch_instance = dispatch
        poller = _poller(scheduler)

        async def run_test():
            await poller.run_once(CancellationToken(), 0, "1")

        with pytest.raises(KeyError):
            asyncio.run(run_test())
