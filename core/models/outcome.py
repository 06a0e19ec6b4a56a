# ============================================================================
# OUTCOME MODELS
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Core model - Per-attempt outcome and run summary
# PURPOSE: What workers emit and what the aggregator reports
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: Outcome, RunSummary, format_duration
# DEPENDENCIES: pydantic
# ============================================================================
"""
Outcome Models

Outcome = the single, final record of one dispatch-and-wait cycle.
Produced by the poller, consumed exactly once by the aggregator.

RunSummary = the aggregate over all outcomes, built incrementally by the
aggregator and emitted once when the outcome channel closes.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from core.contracts import OutcomeStatus


def format_duration(seconds: float) -> str:
    """
    Format a duration rounded to the millisecond.

    850ms, 1.234s, 2m3.5s, 1h0m0s
    """
    ms = int(round(seconds * 1000))
    if ms <= 0:
        return "0s"
    if ms < 1000:
        return f"{ms}ms"

    hours, rem = divmod(ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    secs = (f"{rem / 1000:.3f}".rstrip("0").rstrip(".") or "0") + "s"

    if hours:
        return f"{hours}h{minutes}m{secs}"
    if minutes:
        return f"{minutes}m{secs}"
    return secs


class Outcome(BaseModel):
    """Result of one dispatch-and-wait cycle. Immutable."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0, description="Iteration ordinal within the worker")
    parameter: str = Field(..., description="Work parameter the worker dispatched with")
    status: OutcomeStatus = Field(...)
    error_kind: Optional[str] = Field(
        default=None,
        description="Error class name when not OK"
    )
    message: Optional[str] = Field(default=None, description="Error text when not OK")
    dispatch_id: Optional[str] = Field(
        default=None,
        description="Dispatched instance ID, if the dispatch was accepted"
    )
    worker_id: Optional[str] = Field(default=None)
    duration_ms: Optional[int] = Field(default=None, ge=0)

    @classmethod
    def success(
        cls,
        index: int,
        parameter: str,
        dispatch_id: Optional[str] = None,
        worker_id: Optional[str] = None,
        duration_ms: Optional[int] = None,
    ) -> "Outcome":
        """Create a success outcome."""
        return cls(
            index=index,
            parameter=parameter,
            status=OutcomeStatus.OK,
            dispatch_id=dispatch_id,
            worker_id=worker_id,
            duration_ms=duration_ms,
        )

    @classmethod
    def from_error(
        cls,
        index: int,
        parameter: str,
        error: BaseException,
        cancelled: bool = False,
        dispatch_id: Optional[str] = None,
        worker_id: Optional[str] = None,
        duration_ms: Optional[int] = None,
    ) -> "Outcome":
        """Create a failed (or cancelled) outcome from an exception."""
        return cls(
            index=index,
            parameter=parameter,
            status=OutcomeStatus.CANCELLED if cancelled else OutcomeStatus.FAILED,
            error_kind=type(error).__name__,
            message=str(error) or type(error).__name__,
            dispatch_id=dispatch_id,
            worker_id=worker_id,
            duration_ms=duration_ms,
        )

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.OK

    @property
    def prefix(self) -> str:
        """Per-attempt log prefix, e.g. '[ 1:0   ] '."""
        return f"[{self.parameter:>2}:{self.index:<4}] "

    def log_line(self) -> str:
        if self.ok:
            return self.prefix + "ok"
        return self.prefix + (self.message or self.status.value)


class RunSummary(BaseModel):
    """Aggregate counts for one harness run."""

    total: int = Field(default=0, ge=0)
    succeeded: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    cancelled: int = Field(default=0, ge=0)
    elapsed_seconds: float = Field(default=0.0, ge=0)

    @property
    def errors(self) -> int:
        """Error tally. Cancelled iterations are counted separately."""
        return self.failed

    def record(self, outcome: Outcome) -> None:
        self.total += 1
        if outcome.status == OutcomeStatus.OK:
            self.succeeded += 1
        elif outcome.status == OutcomeStatus.CANCELLED:
            self.cancelled += 1
        else:
            self.failed += 1

    def format_line(self) -> str:
        return (
            f"{self.total} done after {format_duration(self.elapsed_seconds)} "
            f"with {self.errors} errors"
        )


__all__ = [
    "Outcome",
    "RunSummary",
    "format_duration",
]
