"""
Request orchestration: validate, authenticate, fan out, merge.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence
from urllib.parse import urlencode

from shared.errors import AccessLayerException, ConfigurationError, ValidationError
from shared.logging import get_logger
from service_kundli.app.adapters.provider_client import ProviderClient
from service_kundli.app.auth.token_cache import AccessTokenCache
from service_kundli.app.domain import merger, query_normalizer
from service_kundli.app.domain.models import (
    DEFAULT_AYANAMSA,
    DEFAULT_ENDPOINTS,
    Credentials,
    UpstreamEndpointSpec,
)


@dataclass
class HandlerResponse:
    """Status code plus a JSON body holding either the result or ``error``."""

    status_code: int
    body: Dict[str, Any]

    @classmethod
    def from_exception(cls, exc: AccessLayerException) -> "HandlerResponse":
        return cls(status_code=exc.http_status, body=exc.to_response().model_dump())


class RequestHandler:
    """Runs one birth-chart query through the proxy pipeline.

    Stages run in a fixed order and the first failure decides the response:
    configuration (500), query validation (400), token exchange (500),
    provider fan-out and merge (500). Success returns 200 with the merged
    payload.
    """

    def __init__(
        self,
        credentials: Optional[Credentials],
        token_cache: AccessTokenCache,
        provider_client: ProviderClient,
        endpoints: Sequence[UpstreamEndpointSpec] = DEFAULT_ENDPOINTS,
    ):
        self.credentials = credentials
        self.token_cache = token_cache
        self.provider_client = provider_client
        self.endpoints = tuple(endpoints)
        self.logger = get_logger("kundli.handler")

    async def handle(self, raw_query: Optional[str]) -> HandlerResponse:
        """Handle a GET-style request carrying a raw query string."""
        try:
            body = await self._run(raw_query)
        except AccessLayerException as exc:
            self.logger.warning("Request failed", code=exc.code, error=exc.message)
            return HandlerResponse.from_exception(exc)
        return HandlerResponse(status_code=200, body=body)

    async def handle_json(self, payload: Any) -> HandlerResponse:
        """Handle the JSON-body form: ``{datetime, coordinates, ayanamsa?, timezone?}``."""
        if not isinstance(payload, dict):
            try:
                self._check_configuration()
                raise ValidationError("request body must be a JSON object")
            except AccessLayerException as exc:
                return HandlerResponse.from_exception(exc)

        params = {
            key: payload[key]
            for key in ("datetime", "coordinates", "timezone")
            if payload.get(key) is not None
        }
        ayanamsa = payload.get("ayanamsa")
        params["ayanamsa"] = DEFAULT_AYANAMSA if ayanamsa is None else ayanamsa
        return await self.handle(urlencode(params))

    def _check_configuration(self) -> None:
        if self.credentials is None:
            raise ConfigurationError("API credentials are not set up in the service environment.")

    async def _run(self, raw_query: Optional[str]) -> Dict[str, Any]:
        self._check_configuration()

        if raw_query is None or not raw_query.strip().lstrip("?"):
            raise ValidationError("missing query string")

        query_string = query_normalizer.normalize(raw_query)
        token = await self.token_cache.get_token(self.credentials)
        results = await self.provider_client.fetch_all(self.endpoints, query_string, token)
        merged = merger.merge(results)

        self.logger.info("Successfully fetched data", endpoints=[e.name for e in self.endpoints])
        return merged.to_dict()
