# ============================================================================
# MODEL TESTS
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Tests - Allocation, outcome and summary models
# PURPOSE: Verify API parsing, state derivation and report formatting
# CREATED: 18 OCT 2026
# ============================================================================
"""
Model Tests

Covers:
1. Allocation stubs parsed from Nomad API JSON
2. InstanceState derivation from task states
3. Error messages (task failure events, structural anomalies)
4. Outcome log prefix and RunSummary tally/format

Run with:
    pytest tests/test_models.py -v
"""

import pytest
from pydantic import ValidationError

from core.contracts import InstanceState, OutcomeStatus
from core.errors import (
    CancellationError,
    DispatchError,
    StructuralError,
    TaskFailedError,
)
from core.models import (
    Allocation,
    DispatchHandle,
    Outcome,
    RunSummary,
    TaskState,
    classify_instance,
    format_duration,
)


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def alloc_stub():
    """Allocation stub as returned by GET /v1/job/<id>/allocations."""
    return {
        "ID": "6f1a2c3e-0000-4c2b-9d4e-111122223333",
        "JobID": "sleeper/dispatch-1760000000-abcd1234",
        "ClientStatus": "failed",
        "TaskStates": {
            "sleeper": {
                "State": "dead",
                "Failed": True,
                "Events": [
                    {"Type": "Received", "DisplayMessage": "Task received by client", "Time": 1},
                    {"Type": "Driver Failure", "DisplayMessage": "oom", "Time": 2},
                    {"Type": "Killed", "DisplayMessage": "killed", "Time": 3},
                ],
            }
        },
    }


# ============================================================================
# ALLOCATION PARSING
# ============================================================================

class TestAllocation:
    """Tests for Allocation.from_api()."""

    def test_parses_task_states(self, alloc_stub):
        alloc = Allocation.from_api(alloc_stub)

        assert alloc.id == alloc_stub["ID"]
        assert alloc.client_status == "failed"
        state = alloc.task_states["sleeper"]
        assert state.is_terminal
        assert state.failed
        assert state.event_messages() == ["Task received by client", "oom", "killed"]

    def test_null_task_states_means_empty(self):
        alloc = Allocation.from_api({"ID": "a1", "ClientStatus": "pending", "TaskStates": None})

        assert alloc.task_states == {}

    def test_snapshot_keeps_raw_document(self, alloc_stub):
        alloc = Allocation.from_api(alloc_stub)

        assert alloc.snapshot() is alloc_stub
        assert alloc.snapshot()["JobID"] == alloc_stub["JobID"]

    def test_snapshot_without_raw_uses_aliases(self):
        alloc = Allocation(id="a1", task_states={"sleeper": TaskState(state="running")})

        snap = alloc.snapshot()
        assert snap["ID"] == "a1"
        assert snap["TaskStates"]["sleeper"]["State"] == "running"

    def test_missing_id_rejected(self):
        with pytest.raises(ValidationError):
            Allocation.from_api({"ClientStatus": "running"})


class TestDispatchHandle:
    """Tests for DispatchHandle."""

    def test_from_api_response(self):
        handle = DispatchHandle.model_validate(
            {"DispatchedJobID": "sleeper/dispatch-1-abc", "EvalID": "e1", "Index": 42}
        )

        assert handle.dispatched_job_id == "sleeper/dispatch-1-abc"
        assert handle.eval_id == "e1"
        assert str(handle) == "sleeper/dispatch-1-abc"

    def test_empty_id_rejected(self):
        with pytest.raises(ValidationError):
            DispatchHandle(dispatched_job_id="")

    def test_frozen(self):
        handle = DispatchHandle(dispatched_job_id="sleeper/dispatch-1")
        with pytest.raises(ValidationError):
            handle.dispatched_job_id = "other"


# ============================================================================
# INSTANCE STATE
# ============================================================================

class TestClassifyInstance:
    """Tests for classify_instance()."""

    def _alloc(self, **states):
        return Allocation(id="a1", task_states=states)

    def test_no_allocations_is_pending(self):
        assert classify_instance([], "sleeper") == InstanceState.PENDING

    def test_missing_task_is_unknown(self):
        allocs = [self._alloc(other=TaskState(state="running"))]
        assert classify_instance(allocs, "sleeper") == InstanceState.UNKNOWN

    def test_pending_task(self):
        allocs = [self._alloc(sleeper=TaskState(state="pending"))]
        assert classify_instance(allocs, "sleeper") == InstanceState.PENDING

    def test_running_task(self):
        allocs = [self._alloc(sleeper=TaskState(state="running"))]
        assert classify_instance(allocs, "sleeper") == InstanceState.RUNNING

    def test_dead_ok_is_succeeded(self):
        allocs = [self._alloc(sleeper=TaskState(state="dead", failed=False))]
        state = classify_instance(allocs, "sleeper")
        assert state == InstanceState.SUCCEEDED
        assert state.is_terminal()

    def test_dead_failed_is_failed(self):
        allocs = [self._alloc(sleeper=TaskState(state="dead", failed=True))]
        assert classify_instance(allocs, "sleeper") == InstanceState.FAILED

    def test_only_first_allocation_inspected(self):
        allocs = [
            self._alloc(sleeper=TaskState(state="running")),
            self._alloc(sleeper=TaskState(state="dead", failed=True)),
        ]
        assert classify_instance(allocs, "sleeper") == InstanceState.RUNNING


# ============================================================================
# ERRORS
# ============================================================================

class TestErrorMessages:
    """Error text is what ends up in per-attempt log lines."""

    def test_task_failed_brackets_events_in_order(self):
        err = TaskFailedError("sleeper", "sleeper/dispatch-1", ["oom", "killed"])

        assert str(err) == "sleeper task failed sleeper/dispatch-1: events: <oom> <killed> "
        assert err.events == ["oom", "killed"]

    def test_task_failed_without_events(self):
        err = TaskFailedError("sleeper", "d1", [])
        assert str(err).endswith("events: ")

    def test_structural_error(self):
        err = StructuralError("sleeper", "sleeper/dispatch-1")
        assert "expected 'sleeper' task" in str(err)
        assert err.allocations == []

    def test_dispatch_error(self):
        assert str(DispatchError("boom")) == "failed to dispatch job: boom"

    def test_cancellation_phases(self):
        before = CancellationError(CancellationError.BEFORE_DISPATCH)
        waiting = CancellationError(CancellationError.WAITING, "d1")

        assert before.dispatch_id is None
        assert "before dispatch" in str(before)
        assert waiting.phase == "waiting"
        assert "d1" in str(waiting)


# ============================================================================
# OUTCOME / SUMMARY
# ============================================================================

class TestOutcome:
    """Tests for Outcome."""

    def test_success_log_line(self):
        outcome = Outcome.success(0, "1")

        assert outcome.ok
        assert outcome.prefix == "[ 1:0   ] "
        assert outcome.log_line() == "[ 1:0   ] ok"

    def test_error_log_line_uses_message(self):
        err = TaskFailedError("sleeper", "d1", ["oom"])
        outcome = Outcome.from_error(12, "2", err, dispatch_id="d1")

        assert outcome.status == OutcomeStatus.FAILED
        assert outcome.error_kind == "TaskFailedError"
        assert outcome.log_line() == "[ 2:12  ] " + str(err)

    def test_cancelled_outcome(self):
        outcome = Outcome.from_error(
            3, "0", CancellationError(CancellationError.WAITING, "d9"), cancelled=True
        )
        assert outcome.status == OutcomeStatus.CANCELLED
        assert not outcome.ok

    def test_immutable(self):
        outcome = Outcome.success(0, "1")
        with pytest.raises(ValidationError):
            outcome.index = 5


class TestRunSummary:
    """Tests for RunSummary."""

    def test_tally(self):
        summary = RunSummary()
        summary.record(Outcome.success(0, "1"))
        summary.record(Outcome.success(1, "1"))
        summary.record(Outcome.from_error(2, "1", DispatchError("x")))
        summary.record(
            Outcome.from_error(3, "1", CancellationError("waiting", "d"), cancelled=True)
        )

        assert summary.total == 4
        assert summary.succeeded == 2
        assert summary.failed == 1
        assert summary.cancelled == 1
        assert summary.errors == 1

    def test_format_line(self):
        summary = RunSummary(total=6, succeeded=6, elapsed_seconds=7.2504)
        assert summary.format_line() == "6 done after 7.25s with 0 errors"


class TestFormatDuration:
    """Tests for format_duration()."""

    @pytest.mark.parametrize("seconds,expected", [
        (0, "0s"),
        (0.0004, "0s"),
        (0.85, "850ms"),
        (1.0, "1s"),
        (1.2344, "1.234s"),
        (10.0, "10s"),
        (123.5, "2m3.5s"),
        (3600, "1h0m0s"),
    ])
    def test_format(self, seconds, expected):
        assert format_duration(seconds) == expected
