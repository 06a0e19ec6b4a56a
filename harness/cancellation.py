# ============================================================================
# CANCELLATION
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Core - Run-wide cancellation
# PURPOSE: Turn interrupts and the time budget into one cancellation token
# CREATED: 18 OCT 2026
# ============================================================================
"""
Cancellation

One CancellationToken per run, passed explicitly to the pool, every worker
and every poller call. It is read cooperatively: nothing is force-aborted.
Workers check it between iterations; the poller waits on it alongside its
poll interval.

CancellationSource owns the token and the triggers that fire it:
- SIGINT / SIGTERM (first signal cancels, later ones are logged)
- an optional global time budget

Usage:
    with CancellationSource(timeout_seconds=600) as token:
        await run_harness(..., token=token)
"""

import asyncio
import logging
import signal
from typing import Iterable, Optional

from core.logging import log_checkpoint

logger = logging.getLogger(__name__)


class CancellationToken:
    """Read-mostly cancellation flag shared by every task in a run."""

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> bool:
        """
        Signal cancellation.

        Returns:
            True if this call cancelled the token, False if it already was
        """
        if self._event.is_set():
            return False
        self.reason = reason
        self._event.set()
        return True

    async def wait(self) -> None:
        """Block until cancelled."""
        await self._event.wait()

    async def sleep(self, seconds: float) -> bool:
        """
        Sleep for up to `seconds`, waking early on cancellation.

        Returns:
            True if the token is cancelled when the sleep ends
        """
        if self.cancelled:
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass
        # Cancellation wins over an interval that elapsed at the same time
        return self.cancelled


class CancellationSource:
    """
    Installs interrupt handlers and the time budget for a run.

    Must be entered from inside a running event loop.
    """

    def __init__(
        self,
        timeout_seconds: float = 0.0,
        signals: Iterable[signal.Signals] = (signal.SIGINT, signal.SIGTERM),
        token: Optional[CancellationToken] = None,
    ):
        self.timeout_seconds = timeout_seconds
        self.signals = tuple(signals)
        self.token = token or CancellationToken()
        self._installed: list = []
        self._timer: Optional[asyncio.TimerHandle] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def install(self) -> CancellationToken:
        """Register signal handlers and start the budget timer."""
        self._loop = asyncio.get_running_loop()

        for sig in self.signals:
            try:
                self._loop.add_signal_handler(sig, self._on_signal, sig)
                self._installed.append(sig)
            except (NotImplementedError, RuntimeError):
                # Windows, or not the main thread
                logger.debug(f"Cannot install handler for {sig.name}")

        if self.timeout_seconds and self.timeout_seconds > 0:
            self._timer = self._loop.call_later(self.timeout_seconds, self._on_timeout)

        return self.token

    def uninstall(self) -> None:
        """Remove signal handlers and stop the budget timer."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._loop is not None:
            for sig in self._installed:
                self._loop.remove_signal_handler(sig)
        self._installed = []

    def _on_signal(self, sig: signal.Signals) -> None:
        if self.token.cancel(f"signal {sig.name}"):
            logger.info(f"Received {sig.name}, finishing in-flight dispatches...")
            log_checkpoint("cancel_requested", {"reason": sig.name})
        else:
            logger.warning(
                f"Received {sig.name} again; still waiting for workers to finish"
            )

    def _on_timeout(self) -> None:
        self._timer = None
        if self.token.cancel("time budget exhausted"):
            logger.info(f"Time budget of {self.timeout_seconds}s exhausted, cancelling run")
            log_checkpoint("cancel_requested", {"reason": "timeout"})

    def __enter__(self) -> CancellationToken:
        return self.install()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.uninstall()


__all__ = [
    "CancellationToken",
    "CancellationSource",
]
