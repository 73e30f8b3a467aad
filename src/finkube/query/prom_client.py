# src/finkube/query/prom_client.py
"""
Async client for the Prometheus-compatible HTTP query API of the metrics
backend (Prometheus, Thanos, Mimir, Cortex).
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

import httpx

from ..core.config import config
from ..core.exceptions import UpstreamQueryError
from ..models.prometheus import PromSample, PromSeries, parse_matrix, parse_vector
from ..utils.http_client import get_async_http_client

logger = logging.getLogger(__name__)

TENANT_HEADER = "X-Scope-OrgID"

Timestamp = Union[int, float, datetime]


def _to_unix(value: Timestamp) -> float:
    if isinstance(value, datetime):
        return value.timestamp()
    return float(value)


class PromQueryClient:
    """
    Runs instant and range queries against one backend endpoint.

    The client holds no tenant; each call names the tenant it queries for,
    sent as the `X-Scope-OrgID` header understood by multi-tenant backends.
    """

    def __init__(
        self,
        endpoint: str = None,
        http_client: Optional[httpx.AsyncClient] = None,
        bearer_token: Optional[str] = None,
    ):
        self.endpoint = (endpoint or config.QUERY_BACKEND_ENDPOINT).rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or get_async_http_client(verify=config.QUERY_BACKEND_VERIFY_CERTS)
        self.bearer_token = bearer_token if bearer_token is not None else config.QUERY_BACKEND_BEARER_TOKEN

    def _headers(self, tenant: Optional[str]) -> Dict[str, str]:
        headers = {}
        if tenant:
            headers[TENANT_HEADER] = tenant
        if self.bearer_token:
            headers["Authorization"] = f"Bearer {self.bearer_token}"
        return headers

    async def query(
        self, promql: str, time: Optional[Timestamp] = None, tenant: Optional[str] = None
    ) -> List[PromSample]:
        """
        Evaluates an instant query at `time` (backend's now when omitted).

        Raises:
            UpstreamQueryError: On transport failure, non-2xx status, malformed
                JSON or a non-success status.
        """
        params = {"query": promql}
        if time is not None:
            params["time"] = _to_unix(time)
        result = await self._request("POST", "/api/v1/query", params, tenant)
        try:
            return parse_vector(result)
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamQueryError(f"Malformed vector result for query '{promql}': {e}") from e

    async def query_range(
        self,
        promql: str,
        start: Timestamp,
        end: Timestamp,
        step_seconds: int,
        tenant: Optional[str] = None,
    ) -> List[PromSeries]:
        """
        Evaluates a range query over [start, end] every `step_seconds`.

        Raises:
            UpstreamQueryError: On transport failure, non-2xx status, malformed
                JSON or a non-success status.
        """
        params = {
            "query": promql,
            "start": _to_unix(start),
            "end": _to_unix(end),
            "step": f"{int(step_seconds)}s",
        }
        result = await self._request("GET", "/api/v1/query_range", params, tenant)
        try:
            return parse_matrix(result)
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamQueryError(f"Malformed matrix result for query '{promql}': {e}") from e

    async def _request(self, method: str, path: str, params: Dict[str, Any], tenant: Optional[str]) -> list:
        url = f"{self.endpoint}{path}"
        logger.debug(f"Querying {url}: {params['query']}")
        try:
            resp = await self._client.request(method, url, params=params, headers=self._headers(tenant))
        except httpx.HTTPError as e:
            raise UpstreamQueryError(f"Query to {url} failed: {e}") from e

        if not resp.is_success:
            raise UpstreamQueryError(f"Query to {url} returned HTTP {resp.status_code}: {resp.text[:200]}")
        try:
            payload = resp.json()
        except ValueError as e:
            raise UpstreamQueryError(f"Malformed JSON from {url}") from e

        if not isinstance(payload, dict) or payload.get("status") != "success":
            error = payload.get("error", "unknown error") if isinstance(payload, dict) else "unexpected payload"
            raise UpstreamQueryError(f"Query to {url} did not succeed: {error}")
        result = (payload.get("data") or {}).get("result")
        if not isinstance(result, list):
            raise UpstreamQueryError(f"Query to {url} returned no result list")
        return result

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
