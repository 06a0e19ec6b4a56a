# ============================================================================
# HARNESS RUNNER
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Core - Run orchestration
# PURPOSE: Wire poller, pool, channel and aggregator for one load run
# CREATED: 18 OCT 2026
# ============================================================================
"""
Harness Runner

    poller  = InstancePoller(client, ...)
    pool    = WorkerPool(poller, ...)        -- writers
    channel = OutcomeChannel(capacity)
    aggregator.consume(channel)              -- single reader

run_harness() returns only after every worker finished and the aggregator
drained the closed channel, so the summary covers every emitted outcome.
"""

import asyncio
import logging
import time
from typing import Optional

from core.models import RunSummary
from harness.aggregator import OutcomeSink, ResultAggregator
from harness.cancellation import CancellationToken
from harness.channel import OutcomeChannel
from harness.contracts import HarnessConfig
from harness.diagnostics import DiagnosticWriter
from harness.poller import DiagnosticCallback, InstancePoller
from harness.pool import WorkerPool
from scheduler.base import SchedulerClient

logger = logging.getLogger(__name__)


async def run_harness(
    client: SchedulerClient,
    config: HarnessConfig,
    token: CancellationToken,
    job_id: Optional[str] = None,
    sink: Optional[OutcomeSink] = None,
    on_structural_error: Optional[DiagnosticCallback] = None,
) -> RunSummary:
    """
    Run the pool to completion and return the summary.

    Args:
        client: Scheduler facade shared by all workers
        config: Run configuration
        token: Run-wide cancellation token
        job_id: Registered job ID (defaults to config.job_id)
        sink: Optional per-outcome callback
        on_structural_error: Diagnostic callback (defaults to a
            DiagnosticWriter on config.diagnostics_dir)

    Returns:
        RunSummary
    """
    if on_structural_error is None:
        on_structural_error = DiagnosticWriter(config.diagnostics_dir)

    poller = InstancePoller(
        client,
        job_id=job_id or config.job_id,
        task_name=config.task_name,
        param_key=config.param_key,
        poll_interval=config.poll_interval_seconds,
        on_structural_error=on_structural_error,
    )
    pool = WorkerPool(
        poller,
        workers=config.workers,
        iterations=config.iterations,
        token=token,
        max_param=config.max_sleep,
    )
    channel = OutcomeChannel(capacity=config.channel_capacity)
    aggregator = ResultAggregator(started_at=time.monotonic(), sink=sink)

    consumer = asyncio.create_task(aggregator.consume(channel), name="harness-aggregator")
    try:
        await pool.run(channel)
    except BaseException:
        consumer.cancel()
        raise

    summary = await consumer
    await poller.drain_diagnostics()
    return summary


__all__ = ["run_harness"]
