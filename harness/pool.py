# ============================================================================
# WORKER POOL
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Core - Fixed-size worker pool
# PURPOSE: Spawn W workers and close the outcome channel after the last one
# CREATED: 18 OCT 2026
# ============================================================================
"""
Worker Pool

Protocol:
    1. latch = CountdownLatch(W)
    2. spawn W worker tasks, each given latch.count_down as `done`
    3. await latch.wait()             (every worker signaled completion)
    4. channel.close()                (exactly once)

The close therefore happens-after every completion signal. Workers call
`done` from a finally block, so an unexpected worker error cannot leave
the latch (and the aggregator) waiting forever.

Parameters are spread over workers by modulo: worker i (1-based) gets
str(i % max_param).
"""

import asyncio
import logging
import time
from typing import List, Optional

from core.logging import log_checkpoint
from harness.cancellation import CancellationToken
from harness.channel import OutcomeChannel
from harness.poller import InstancePoller
from harness.worker import run_worker

logger = logging.getLogger(__name__)


# ============================================================================
# COUNTDOWN LATCH
# ============================================================================

class CountdownLatch:
    """Releases waiters once count_down() has been called `count` times."""

    def __init__(self, count: int):
        if count < 0:
            raise ValueError(f"latch count must be >= 0 (got {count})")
        self._count = count
        self._event = asyncio.Event()
        if count == 0:
            self._event.set()

    @property
    def count(self) -> int:
        return self._count

    def count_down(self) -> None:
        if self._count == 0:
            raise RuntimeError("latch already released")
        self._count -= 1
        if self._count == 0:
            self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


# ============================================================================
# POOL
# ============================================================================

def assign_parameters(workers: int, max_param: int) -> List[str]:
    """Modulo spread of work parameters over worker ordinals 1..workers."""
    modulus = max(1, max_param)
    return [str(i % modulus) for i in range(1, workers + 1)]


class WorkerPool:
    """
    Runs a fixed number of workers against one poller.

    Usage:
        pool = WorkerPool(poller, workers=50, iterations=10, token=token)
        await pool.run(channel)
    """

    def __init__(
        self,
        poller: InstancePoller,
        workers: int,
        iterations: int,
        token: CancellationToken,
        max_param: int = 3,
        parameters: Optional[List[str]] = None,
    ):
        """
        Initialize pool.

        Args:
            poller: Instance poller shared by all workers
            workers: Number of concurrent workers
            iterations: Dispatch cycles per worker
            token: Run-wide cancellation token
            max_param: Modulus for parameter assignment
            parameters: Explicit per-worker parameters (overrides max_param)
        """
        if workers < 1:
            raise ValueError(f"workers must be >= 1 (got {workers})")
        if parameters is not None and len(parameters) != workers:
            raise ValueError(
                f"expected {workers} parameters, got {len(parameters)}"
            )

        self.poller = poller
        self.workers = workers
        self.iterations = iterations
        self.token = token
        self.parameters = parameters or assign_parameters(workers, max_param)

        self.started_at: Optional[float] = None
        self._tasks: List[asyncio.Task] = []

    @property
    def tasks(self) -> List[asyncio.Task]:
        return list(self._tasks)

    async def run(self, channel: OutcomeChannel) -> None:
        """Run every worker to completion, then close the channel."""
        latch = CountdownLatch(self.workers)
        self.started_at = time.monotonic()

        logger.info(
            f"Starting {self.workers} workers x {self.iterations} iterations "
            f"(parameters: {sorted(set(self.parameters))})"
        )
        log_checkpoint("pool_started", {"workers": self.workers, "iterations": self.iterations})

        for ordinal, parameter in enumerate(self.parameters, start=1):
            task = asyncio.create_task(
                run_worker(
                    self.poller,
                    worker_id=f"w-{ordinal}",
                    parameter=parameter,
                    iterations=self.iterations,
                    channel=channel,
                    token=self.token,
                    done=latch.count_down,
                ),
                name=f"harness-worker-{ordinal}",
            )
            self._tasks.append(task)

        try:
            await latch.wait()
        except asyncio.CancelledError:
            for task in self._tasks:
                task.cancel()
            raise

        await channel.close()

        # Every worker already signaled; collect unexpected task failures
        results = await asyncio.gather(*self._tasks, return_exceptions=True)
        for task, result in zip(self._tasks, results):
            if isinstance(result, BaseException):
                logger.error(f"{task.get_name()} exited with {type(result).__name__}: {result}")

        log_checkpoint("pool_drained", {"workers": self.workers})


__all__ = [
    "CountdownLatch",
    "assign_parameters",
    "WorkerPool",
]
