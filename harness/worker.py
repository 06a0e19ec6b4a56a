# ============================================================================
# HARNESS WORKER
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Core - Sequential dispatch loop
# PURPOSE: Run N dispatch-and-wait cycles with one fixed parameter
# CREATED: 18 OCT 2026
# ============================================================================
"""
Harness Worker

A worker never has two instances in flight, so the number of concurrent
dispatches equals the number of workers.

Per iteration: poller.run_once() -> channel.send(outcome) -> check the
cancellation token. A cancelled token stops the worker before it starts
another iteration; an iteration already in flight is not aborted, the
poller notices the token at its next tick.

`done` is always called, whatever happens, so the pool's latch can
release.
"""

import logging
from typing import Callable

from core.logging import log_context
from core.models import Outcome
from harness.cancellation import CancellationToken
from harness.channel import OutcomeChannel
from harness.poller import InstancePoller

logger = logging.getLogger(__name__)


async def run_worker(
    poller: InstancePoller,
    worker_id: str,
    parameter: str,
    iterations: int,
    channel: OutcomeChannel,
    token: CancellationToken,
    done: Callable[[], None],
) -> int:
    """
    Run up to `iterations` sequential dispatch cycles.

    Args:
        poller: Shared instance poller
        worker_id: Identifier for logs and outcomes
        parameter: Work parameter, fixed for this worker's lifetime
        iterations: Maximum number of cycles
        channel: Outcome channel shared with the aggregator
        token: Run-wide cancellation token
        done: Completion signal for the pool

    Returns:
        Number of outcomes emitted
    """
    emitted = 0
    try:
        with log_context(worker_id=worker_id, parameter=parameter):
            for index in range(iterations):
                with log_context(iteration=index):
                    try:
                        outcome = await poller.run_once(
                            token, index, parameter, worker_id=worker_id
                        )
                    except Exception as e:
                        logger.exception(f"Unexpected error in iteration {index}: {e}")
                        await channel.send(
                            Outcome.from_error(index, parameter, e, worker_id=worker_id)
                        )
                        emitted += 1
                        return emitted

                await channel.send(outcome)
                emitted += 1

                if token.cancelled:
                    logger.debug(
                        f"Stopping after {emitted}/{iterations} iterations: {token.reason}"
                    )
                    return emitted
        return emitted
    finally:
        done()


__all__ = ["run_worker"]
