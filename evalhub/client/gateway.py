"""
REST Gateway

Builds authenticated, tenant-scoped requests against the EvalHub API and
translates HTTP failures into typed errors. Transient transport failures are
retried by the AsyncCaller every request is routed through.

Usage:
    async with RestGateway("http://localhost:8000", tenant_id="t-1") as gateway:
        datasets = await gateway.get("/datasets", {"limit": 10})
"""

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from utils.exceptions import HttpError
from utils.retry import AsyncCaller

logger = logging.getLogger(__name__)


class RestGateway:
    """
    Thin JSON gateway over a shared httpx.AsyncClient.

    Header and query construction is read-only per call, so one gateway can
    serve many concurrent requests.
    """

    def __init__(
        self,
        api_url: str,
        tenant_id: str,
        api_key: Optional[str] = None,
        caller: Optional[AsyncCaller] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        """
        Args:
            api_url: Base URL of the API (no trailing slash required).
            tenant_id: Tenant every request is scoped to.
            api_key: Optional bearer token.
            caller: Retrying caller; a default one is created if omitted.
            transport: Optional httpx transport (used by tests).
            timeout: Request timeout in seconds.
        """
        self.api_url = api_url.rstrip("/")
        self.tenant_id = tenant_id
        self.api_key = api_key
        self.caller = caller or AsyncCaller()
        self._client = httpx.AsyncClient(transport=transport, timeout=timeout)

    @property
    def headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if self.api_key:
            headers["authorization"] = f"Bearer {self.api_key}"
        return headers

    @property
    def query_params(self) -> Dict[str, str]:
        return {"tenant_id": self.tenant_id}

    def _merge_params(self, params: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        merged = {k: v for k, v in (params or {}).items() if v is not None}
        # The tenant scope always wins over caller-supplied keys
        merged.update(self.query_params)
        return merged

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        **kwargs: Any,
    ) -> Any:
        url = f"{self.api_url}{path}"
        logger.debug("%s %s", method, url)
        response = await self.caller.call(
            self._client.request,
            method,
            url,
            params=self._merge_params(params),
            headers=self.headers,
            **kwargs,
        )
        if not response.is_success:
            raise HttpError(
                status=response.status_code,
                path=path,
                reason=response.reason_phrase,
                detail=_error_detail(response),
            )
        return response.json()

    async def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """GET `path` and decode the JSON body."""
        return await self._request("GET", path, params=params)

    async def post_json(self, path: str, body: Any) -> Any:
        """POST a JSON body to `path` and decode the JSON response."""
        return await self._request("POST", path, json=body)

    async def post_multipart(
        self,
        path: str,
        fields: Mapping[str, str],
        files: Mapping[str, Any],
    ) -> Any:
        """POST multipart form data (`fields` plus `files`) to `path`."""
        return await self._request("POST", path, data=dict(fields), files=dict(files))

    async def delete(self, path: str) -> Any:
        """DELETE `path` and decode the JSON response."""
        return await self._request("DELETE", path)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RestGateway":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()


def _error_detail(response: httpx.Response) -> Optional[str]:
    """Extract the server's `detail` message from an error response, if any."""
    try:
        body = response.json()
    except ValueError:
        return response.text or None
    if isinstance(body, dict) and body.get("detail") is not None:
        detail = body["detail"]
        return detail if isinstance(detail, str) else str(detail)
    return None
