# ============================================================================
# NOMAD HTTP CLIENT
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Boundary - Async HTTP client for the Nomad job API
# PURPOSE: Parse, register, dispatch and poll parameterized jobs
# CREATED: 18 OCT 2026
# ============================================================================
"""
Nomad HTTP Client

Async httpx client implementing SchedulerClient against the Nomad HTTP API:

    POST /v1/jobs/parse                 HCL -> job JSON
    POST /v1/jobs                       register job
    POST /v1/job/<id>/dispatch          dispatch parameterized instance
    GET  /v1/job/<id>/allocations       allocation stubs with task states

One AsyncClient (one connection pool) is shared by every worker task.
Any non-2xx response or transport failure raises SchedulerAPIError.
"""

import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from core.config import NomadDefaults
from core.models import Allocation, DispatchHandle
from scheduler.base import SchedulerAPIError, SchedulerClient

logger = logging.getLogger(__name__)


class NomadClient(SchedulerClient):
    """Async HTTP client for the Nomad job API."""

    def __init__(
        self,
        address: Optional[str] = None,
        token: Optional[str] = None,
        namespace: Optional[str] = None,
        region: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Unset arguments fall back to NOMAD_ADDR, NOMAD_TOKEN,
        NOMAD_NAMESPACE, NOMAD_REGION.

        Args:
            address: Nomad agent address
            token: ACL token
            namespace: Job namespace
            region: Job region
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests)

        Raises:
            SchedulerAPIError: address is not a usable URL
            ValueError: malformed NOMAD_HTTP_TIMEOUT
        """
        defaults = NomadDefaults.from_env()
        self.address = (address or defaults.address).rstrip("/")
        self.namespace = namespace or defaults.namespace
        self.region = region or defaults.region

        headers = {"Accept": "application/json"}
        acl_token = token or defaults.token
        if acl_token:
            headers["X-Nomad-Token"] = acl_token

        try:
            self._client = httpx.AsyncClient(
                base_url=self.address,
                headers=headers,
                timeout=httpx.Timeout(timeout or defaults.request_timeout_seconds),
                transport=transport,
            )
        except httpx.InvalidURL as e:
            raise SchedulerAPIError(f"invalid Nomad address {self.address!r}: {e}") from e

    def _params(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        params: Dict[str, str] = {}
        if self.namespace:
            params["namespace"] = self.namespace
        if self.region:
            params["region"] = self.region
        if extra:
            params.update(extra)
        return params

    async def _request(
        self,
        method: str,
        path: str,
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        Make a request to the Nomad API.

        Returns the decoded JSON body.
        """
        try:
            resp = await self._client.request(
                method, path, json=json_body, params=self._params(params)
            )
        except httpx.TimeoutException as e:
            raise SchedulerAPIError(f"timeout calling {method} {path}: {e}") from e
        except httpx.HTTPError as e:
            raise SchedulerAPIError(f"error calling {method} {path}: {e}") from e

        if resp.status_code >= 400:
            raise SchedulerAPIError(
                f"Unexpected response code: {resp.status_code} ({resp.text[:500]})",
                status_code=resp.status_code,
            )

        try:
            return resp.json()
        except ValueError as e:
            raise SchedulerAPIError(
                f"invalid JSON from {method} {path}: {e}",
                status_code=resp.status_code,
            ) from e

    # ------------------------------------------------------------------
    # JOB REGISTRATION
    # ------------------------------------------------------------------

    async def parse_job(self, definition: str) -> Dict[str, Any]:
        """
        Parse a job definition.

        JSON definitions are used as-is; anything else is sent to the
        agent's HCL parser.
        """
        if definition.lstrip().startswith("{"):
            return await super().parse_job(definition)

        job = await self._request(
            "POST",
            "/v1/jobs/parse",
            json_body={"JobHCL": definition, "Canonicalize": True},
        )
        if not isinstance(job, dict):
            raise SchedulerAPIError("unexpected response from job parser")
        return job

    async def register_job(self, job: Dict[str, Any]) -> str:
        """POST /v1/jobs"""
        body = await self._request("POST", "/v1/jobs", json_body={"Job": job})
        job_id = job.get("ID") or job.get("Name")
        logger.info(f"Registered job {job_id} (eval={body.get('EvalID') or '-'})")
        return job_id

    # ------------------------------------------------------------------
    # DISPATCH
    # ------------------------------------------------------------------

    async def dispatch_instance(
        self,
        job_id: str,
        parameters: Dict[str, str],
    ) -> DispatchHandle:
        """POST /v1/job/{job_id}/dispatch"""
        body = await self._request(
            "POST",
            f"/v1/job/{quote(job_id, safe='')}/dispatch",
            json_body={"JobID": job_id, "Meta": parameters},
        )
        try:
            return DispatchHandle.model_validate(body)
        except ValueError as e:
            raise SchedulerAPIError(f"dispatch response missing DispatchedJobID: {e}") from e

    # ------------------------------------------------------------------
    # QUERY
    # ------------------------------------------------------------------

    async def query_task_states(self, handle: DispatchHandle) -> List[Allocation]:
        """GET /v1/job/{dispatched_job_id}/allocations?all=true"""
        body = await self._request(
            "GET",
            f"/v1/job/{quote(handle.dispatched_job_id, safe='')}/allocations",
            params={"all": "true"},
        )
        if body is None:
            return []
        if not isinstance(body, list):
            raise SchedulerAPIError(
                f"unexpected allocations response: {json.dumps(body)[:200]}"
            )
        try:
            return [Allocation.from_api(item) for item in body]
        except ValueError as e:
            raise SchedulerAPIError(f"malformed allocation: {e}") from e

    async def close(self) -> None:
        """Close the HTTP connection pool."""
        await self._client.aclose()


__all__ = ["NomadClient"]
