"""
Provider token endpoint client.
"""

from typing import Optional

import httpx

from shared.logging import get_logger
from shared.errors import AuthError
from shared.metrics import MetricsCollector
from service_kundli.app.domain.models import Credentials, TokenGrant


class ProviderTokenClient:
    """Exchanges client credentials for a bearer token (OAuth2 client-credentials grant)."""

    def __init__(
        self,
        token_url: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.token_url = token_url
        self.logger = get_logger("kundli.token_client")
        self.metrics = metrics
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def exchange(self, credentials: Credentials) -> TokenGrant:
        """Perform one token exchange; failures are never cached by callers."""
        form = {
            "grant_type": "client_credentials",
            "client_id": credentials.client_id,
            "client_secret": credentials.client_secret,
        }

        try:
            response = await self._client.post(
                self.token_url,
                data=form,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.HTTPError as e:
            self.logger.error("Token endpoint unreachable", error=str(e))
            self._record("error")
            raise AuthError(
                "Could not reach the provider token endpoint",
                details={"http_error": str(e)}
            )

        if not response.is_success:
            self.logger.error(
                "Failed to get access token",
                status_code=response.status_code,
                response=response.text
            )
            self._record("rejected")
            raise AuthError(
                f"Could not authenticate with the provider (HTTP {response.status_code}): {response.text}",
                details={"status_code": response.status_code, "body": response.text}
            )

        try:
            payload = response.json()
            grant = TokenGrant(
                access_token=str(payload["access_token"]),
                expires_in=int(payload["expires_in"]),
            )
        except (ValueError, KeyError, TypeError) as e:
            self._record("error")
            raise AuthError(
                "Provider token endpoint returned an unexpected response",
                details={"error": str(e)}
            )

        self._record("ok")
        self.logger.info("Successfully obtained access token")
        return grant

    def _record(self, status: str) -> None:
        if self.metrics is not None:
            self.metrics.increment_counter("token_exchanges_total", status=status)
