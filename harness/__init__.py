# ============================================================================
# HARNESS MODULE
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Core - Concurrency and polling engine
# PURPOSE: Worker pool, instance poller, cancellation and aggregation
# CREATED: 18 OCT 2026
# ============================================================================
"""
Harness Module

Worker pool that dispatches a parameterized job concurrently, polls each
instance to a terminal state, and aggregates the outcomes.

Components:
    - InstancePoller: dispatch/poll state machine for one instance
    - run_worker: sequential loop of poller calls
    - WorkerPool: fixed set of workers, closes the channel after the last
    - OutcomeChannel: bounded worker -> aggregator stream
    - ResultAggregator: tallies and logs outcomes, emits the summary
    - CancellationSource: interrupts and time budget -> CancellationToken
"""

from harness.aggregator import ResultAggregator
from harness.cancellation import CancellationSource, CancellationToken
from harness.channel import OutcomeChannel
from harness.contracts import HarnessConfig
from harness.diagnostics import DiagnosticWriter
from harness.poller import InstancePoller
from harness.pool import CountdownLatch, WorkerPool, assign_parameters
from harness.runner import run_harness
from harness.worker import run_worker

__all__ = [
    "ResultAggregator",
    "CancellationSource",
    "CancellationToken",
    "OutcomeChannel",
    "HarnessConfig",
    "DiagnosticWriter",
    "InstancePoller",
    "CountdownLatch",
    "WorkerPool",
    "assign_parameters",
    "run_harness",
    "run_worker",
]
