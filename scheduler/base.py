# ============================================================================
# SCHEDULER CLIENT FACADE
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Boundary - Abstract scheduler operations
# PURPOSE: The only view of the batch scheduler the harness core depends on
# CREATED: 18 OCT 2026
# ============================================================================
"""
Scheduler Client Facade

The harness core talks to the batch scheduler through four operations:

    parse_job(definition)           -> job document
    register_job(job)               -> job id           (once, at startup)
    dispatch_instance(job_id, meta) -> DispatchHandle   (every iteration)
    query_task_states(handle)       -> [Allocation]     (every poll tick)

Implementations raise SchedulerAPIError for any transport or API failure;
the poller decides which harness error that becomes.

An implementation must be safe for concurrent use from many worker tasks
on one event loop: the pool shares a single client.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from core.models import Allocation, DispatchHandle


class SchedulerAPIError(Exception):
    """Raised when a scheduler call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class SchedulerClient(ABC):
    """Abstract base for scheduler clients."""

    async def parse_job(self, definition: str) -> Dict[str, Any]:
        """
        Turn a job definition file's contents into a job document.

        The default accepts JSON, either the bare job or {"Job": {...}}.

        Raises:
            SchedulerAPIError if the definition cannot be parsed
        """
        try:
            data = json.loads(definition)
        except json.JSONDecodeError as e:
            raise SchedulerAPIError(f"invalid job JSON: {e}") from e
        if isinstance(data, dict) and isinstance(data.get("Job"), dict):
            return data["Job"]
        if not isinstance(data, dict):
            raise SchedulerAPIError("job definition must be a JSON object")
        return data

    @abstractmethod
    async def register_job(self, job: Dict[str, Any]) -> str:
        """
        Register (create or update) a job.

        Args:
            job: Parsed job document

        Returns:
            Registered job ID
        """
        pass

    @abstractmethod
    async def dispatch_instance(
        self,
        job_id: str,
        parameters: Dict[str, str],
    ) -> DispatchHandle:
        """
        Dispatch one instance of a parameterized job.

        Args:
            job_id: Parameterized job ID
            parameters: Dispatch metadata

        Returns:
            Handle of the dispatched instance
        """
        pass

    @abstractmethod
    async def query_task_states(self, handle: DispatchHandle) -> List[Allocation]:
        """
        List the allocations of a dispatched instance, with task states.

        An empty list means nothing has been placed yet.
        """
        pass

    async def close(self) -> None:
        """Clean up resources."""
        pass

    async def __aenter__(self) -> "SchedulerClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


__all__ = [
    "SchedulerAPIError",
    "SchedulerClient",
]
