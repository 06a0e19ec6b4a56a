# ============================================================================
# OUTCOME CHANNEL
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Core - Worker-to-aggregator stream
# PURPOSE: Bounded many-writer/one-reader queue with a once-only close
# CREATED: 18 OCT 2026
# ============================================================================
"""
Outcome Channel

Workers send Outcomes; the aggregator iterates until the channel is closed.
Only the worker pool closes it, and only after every worker has signaled
completion. Closing twice, or sending after close, raises
ChannelClosedError.

    channel = OutcomeChannel(capacity=100)
    await channel.send(outcome)
    ...
    async for outcome in channel:
        ...
"""

import asyncio

from core.errors import ChannelClosedError
from core.models import Outcome

_CLOSED = object()


class OutcomeChannel:
    """Bounded outcome stream."""

    def __init__(self, capacity: int = 100):
        self.capacity = capacity
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=capacity)
        self._closed = False
        self._drained = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, outcome: Outcome) -> None:
        """Enqueue an outcome, waiting while the channel is full."""
        if self._closed:
            raise ChannelClosedError("send on closed outcome channel")
        await self._queue.put(outcome)

    async def close(self) -> None:
        """Mark the end of the stream. Allowed exactly once."""
        if self._closed:
            raise ChannelClosedError("outcome channel already closed")
        self._closed = True
        await self._queue.put(_CLOSED)

    def __aiter__(self) -> "OutcomeChannel":
        return self

    async def __anext__(self) -> Outcome:
        if self._drained:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            self._drained = True
            raise StopAsyncIteration
        return item


__all__ = ["OutcomeChannel"]
