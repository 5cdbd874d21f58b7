"""
Process-wide cache for the provider bearer token.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Optional

from shared.logging import get_logger
from service_kundli.app.domain.models import CachedToken, Credentials, TokenGrant

TokenExchange = Callable[[Credentials], Awaitable[TokenGrant]]
Clock = Callable[[], float]

DEFAULT_SAFETY_MARGIN_SECONDS = 300


class AccessTokenCache:
    """Caches one bearer token and refreshes it shortly before it expires.

    The exchange coroutine and the clock are injected: the service passes
    ``ProviderTokenClient.exchange`` and ``time.time``, tests pass doubles.
    Concurrent callers that find the cache stale share one refresh.
    """

    def __init__(
        self,
        exchange: TokenExchange,
        *,
        clock: Clock = time.time,
        safety_margin_seconds: int = DEFAULT_SAFETY_MARGIN_SECONDS,
    ) -> None:
        self._exchange = exchange
        self._clock = clock
        self._safety_margin_millis = safety_margin_seconds * 1000
        self._token: Optional[CachedToken] = None
        self._lock = asyncio.Lock()
        self.logger = get_logger("kundli.token_cache")

    @property
    def cached(self) -> Optional[CachedToken]:
        return self._token

    def _now_millis(self) -> int:
        return int(self._clock() * 1000)

    def _fresh_token(self) -> Optional[str]:
        token = self._token
        if token is not None and token.is_fresh(self._now_millis(), self._safety_margin_millis):
            return token.value
        return None

    async def get_token(self, credentials: Credentials) -> str:
        """Return a bearer token, exchanging credentials only when needed."""
        value = self._fresh_token()
        if value is not None:
            return value

        async with self._lock:
            # Another caller may have refreshed while we waited.
            value = self._fresh_token()
            if value is not None:
                return value

            self.logger.info("Requesting new access token")
            grant = await self._exchange(credentials)
            self._token = CachedToken(
                value=grant.access_token,
                expires_at_epoch_millis=self._now_millis() + grant.expires_in * 1000,
            )
            self.logger.info("Access token cached", expires_in=grant.expires_in)
            return grant.access_token

    def invalidate(self) -> None:
        """Drop the cached token so the next caller refreshes."""
        self._token = None
