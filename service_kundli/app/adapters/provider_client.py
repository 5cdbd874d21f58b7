"""
Provider resource client: concurrent fan-out over the astrology endpoints.
"""

import asyncio
import time
from typing import Any, List, Optional, Sequence

import httpx

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from service_kundli.app.domain.models import UpstreamEndpointSpec, UpstreamResult


class ProviderClient:
    """Issues authenticated GETs against provider resources.

    ``fetch_all`` never raises: every endpoint yields an ``UpstreamResult``
    whether it succeeded, returned an HTTP error, or failed in transport,
    so callers can see the outcome of every call.
    """

    def __init__(
        self,
        base_url: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 15.0,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.logger = get_logger("kundli.provider_client")
        self.metrics = metrics
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    def build_url(self, endpoint: UpstreamEndpointSpec, query_string: str) -> str:
        return f"{self.base_url}{endpoint.path_template}?{query_string}"

    async def fetch_all(
        self,
        endpoints: Sequence[UpstreamEndpointSpec],
        query_string: str,
        token: str,
    ) -> List[UpstreamResult]:
        """Call every endpoint concurrently and wait for all of them.

        Results come back in the order of ``endpoints``.
        """
        self.logger.info("Calling provider endpoints", endpoints=[e.name for e in endpoints])
        results = await asyncio.gather(
            *(self._fetch_one(endpoint, query_string, token) for endpoint in endpoints)
        )
        self.logger.info(
            "Provider responses received",
            outcomes={r.endpoint_name: r.status_code for r in results},
        )
        return list(results)

    async def _fetch_one(self, endpoint: UpstreamEndpointSpec, query_string: str, token: str) -> UpstreamResult:
        url = self.build_url(endpoint, query_string)
        start = time.perf_counter()
        try:
            response = await self._client.get(url, headers={"Authorization": f"Bearer {token}"})
        except httpx.HTTPError as e:
            self.logger.error("Provider request failed", endpoint=endpoint.name, error=str(e))
            self._record(endpoint.name, "transport_error", start)
            return UpstreamResult(
                endpoint_name=endpoint.name,
                ok=False,
                status_code=0,
                error=f"API request failed: {e.__class__.__name__}: {e}",
            )

        if not response.is_success:
            message = extract_error_message(response)
            self.logger.error(
                "Provider returned an error",
                endpoint=endpoint.name,
                status_code=response.status_code,
                error=message,
            )
            self._record(endpoint.name, "error", start)
            return UpstreamResult(
                endpoint_name=endpoint.name,
                ok=False,
                status_code=response.status_code,
                payload=_parse_body(response),
                error=message,
            )

        payload = _parse_body(response)
        if not isinstance(payload, dict):
            self._record(endpoint.name, "invalid", start)
            return UpstreamResult(
                endpoint_name=endpoint.name,
                ok=False,
                status_code=response.status_code,
                payload=payload,
                error=f"API returned an unexpected response: {response.text}",
            )

        self._record(endpoint.name, "ok", start)
        return UpstreamResult(
            endpoint_name=endpoint.name,
            ok=True,
            status_code=response.status_code,
            payload=payload,
        )

    def _record(self, endpoint_name: str, status: str, start: float) -> None:
        if self.metrics is None:
            return
        self.metrics.increment_counter("upstream_requests_total", endpoint=endpoint_name, status=status)
        self.metrics.observe_histogram(
            "upstream_request_duration_seconds",
            time.perf_counter() - start,
            endpoint=endpoint_name,
        )


def _parse_body(response: httpx.Response) -> Any:
    """Return the JSON body, or the raw text when it is not JSON."""
    try:
        return response.json()
    except ValueError:
        return response.text


def extract_error_message(response: httpx.Response) -> str:
    """Pull a human-readable detail out of a failed provider response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"API error (HTTP {response.status_code})."

    if isinstance(body, dict):
        errors = body.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            detail = errors[0].get("detail") or errors[0].get("title")
            if detail:
                return str(detail)
        for key in ("detail", "message", "error"):
            if isinstance(body.get(key), str) and body[key]:
                return body[key]

    return f"API error (HTTP {response.status_code})."
