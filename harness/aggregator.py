# ============================================================================
# RESULT AGGREGATOR
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Core - Outcome tally and reporting
# PURPOSE: Drain the outcome channel, log each attempt, emit the run summary
# CREATED: 18 OCT 2026
# ============================================================================
"""
Result Aggregator

Single reader of the outcome channel. For every outcome:
    - tally ok / failed / cancelled
    - log "[<parameter>:<index>] <status or error>"
    - forward to the caller's sink, if any

When the channel closes:
    "<total> done after <duration> with <errors> errors"

Outcomes from different workers interleave in any order.
"""

import logging
import time
from typing import Callable, Optional

from core.contracts import OutcomeStatus
from core.models import Outcome, RunSummary
from harness.channel import OutcomeChannel

logger = logging.getLogger(__name__)

OutcomeSink = Callable[[Outcome], None]


class ResultAggregator:
    """Consumes outcomes and builds the RunSummary."""

    def __init__(
        self,
        started_at: Optional[float] = None,
        sink: Optional[OutcomeSink] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize aggregator.

        Args:
            started_at: Pool start time on `clock`'s timeline
            sink: Optional per-outcome callback
            clock: Monotonic clock
        """
        self._clock = clock
        self.started_at = started_at if started_at is not None else clock()
        self._sink = sink
        self.summary = RunSummary()

    def record(self, outcome: Outcome) -> None:
        """Tally and log one outcome."""
        self.summary.record(outcome)

        if outcome.status == OutcomeStatus.FAILED:
            logger.warning(outcome.log_line())
        else:
            logger.info(outcome.log_line())

        if self._sink is not None:
            try:
                self._sink(outcome)
            except Exception as e:
                logger.warning(f"Outcome sink failed for {outcome.prefix.strip()}: {e}")

    async def consume(self, channel: OutcomeChannel) -> RunSummary:
        """Drain the channel until closed, then finalize the summary."""
        async for outcome in channel:
            self.record(outcome)
        return self.finalize()

    def finalize(self) -> RunSummary:
        self.summary.elapsed_seconds = max(0.0, self._clock() - self.started_at)
        logger.info(self.summary.format_line())
        if self.summary.cancelled:
            logger.info(f"{self.summary.cancelled} cancelled")
        return self.summary


__all__ = [
    "OutcomeSink",
    "ResultAggregator",
]
