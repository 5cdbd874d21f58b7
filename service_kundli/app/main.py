"""
Kundli proxy service.

Holds the provider credentials, answers birth-chart queries by calling the
provider's kundli, dasha and planet-position resources concurrently, and
returns one merged payload.
"""

import json
from typing import Dict, Optional

import httpx
from fastapi import Request
from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.errors import ConfigurationError
from service_kundli.app.adapters.provider_client import ProviderClient
from service_kundli.app.adapters.token_client import ProviderTokenClient
from service_kundli.app.auth.credentials import load_credentials
from service_kundli.app.auth.token_cache import AccessTokenCache
from service_kundli.app.domain.handler import HandlerResponse, RequestHandler
from service_kundli.app.domain.models import DEFAULT_ENDPOINTS, PLANET_POSITION, Credentials


class KundliService(BaseService):
    """Kundli proxy service implementation."""

    def __init__(self, config: Optional[ServiceConfig] = None):
        super().__init__("kundli", 8000, config=config or get_config("kundli", 8000))

        self.credentials: Optional[Credentials] = None
        try:
            self.credentials = load_credentials(self.config)
        except ConfigurationError as e:
            self.logger.error("API credentials are not set in the environment", missing=e.details.get("missing"))

        self.http_client = httpx.AsyncClient(timeout=self.config.upstream_timeout_seconds)
        self.token_client = ProviderTokenClient(
            self.config.token_url,
            client=self.http_client,
            metrics=self.metrics,
        )
        self.provider_client = ProviderClient(
            self.config.api_base_url,
            client=self.http_client,
            metrics=self.metrics,
        )
        self.token_cache = AccessTokenCache(
            self.token_client.exchange,
            safety_margin_seconds=self.config.token_safety_margin_seconds,
        )

        endpoints = DEFAULT_ENDPOINTS
        if not self.config.include_planet_positions:
            endpoints = tuple(e for e in DEFAULT_ENDPOINTS if e.name != PLANET_POSITION)

        self.handler = RequestHandler(
            self.credentials,
            self.token_cache,
            self.provider_client,
            endpoints=endpoints,
        )

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.http_client.aclose()

        self._setup_kundli_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.kundli_service = self

    def _setup_kundli_routes(self):
        """Set up proxy routes."""

        @self.app.get("/")
        async def root():
            return {"service": self.service_name, "message": "Kundli Proxy"}

        @self.app.get("/api/v1/astrology")
        async def get_astrology(request: Request):
            """Birth-chart query carried in the query string."""
            result = await self.handler.handle(request.url.query)
            return self._to_response(result)

        @self.app.post("/api/v1/astrology")
        async def post_astrology(request: Request):
            """Birth-chart query carried in a JSON body."""
            raw = await request.body()
            try:
                payload = json.loads(raw) if raw else None
            except ValueError:
                payload = None
            result = await self.handler.handle_json(payload)
            return self._to_response(result)

    def _to_response(self, result: HandlerResponse) -> JSONResponse:
        return JSONResponse(status_code=result.status_code, content=result.body)

    async def _check_dependencies(self) -> Dict[str, str]:
        """Report whether provider credentials are configured."""
        return {"credentials": "ok" if self.credentials is not None else "missing"}


def create_app(config: Optional[ServiceConfig] = None):
    """Create FastAPI application."""
    service = KundliService(config)
    return service.app


if __name__ == "__main__":
    service = KundliService()
    service.run()
