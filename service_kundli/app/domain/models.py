"""
Domain models for the Kundli proxy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Credentials:
    """Provider client credentials, loaded once per process."""

    client_id: str
    client_secret: str = field(repr=False)


@dataclass(frozen=True)
class TokenGrant:
    """Result of a single client-credentials token exchange."""

    access_token: str
    expires_in: int


@dataclass(frozen=True)
class CachedToken:
    """Bearer token held by the token cache."""

    value: str
    expires_at_epoch_millis: int

    def is_fresh(self, now_millis: int, safety_margin_millis: int) -> bool:
        return self.expires_at_epoch_millis - now_millis > safety_margin_millis


@dataclass(frozen=True)
class BirthQuery:
    """Validated birth-chart query."""

    datetime: str
    coordinates: str
    ayanamsa: int
    timezone: Optional[str] = None


@dataclass(frozen=True)
class UpstreamEndpointSpec:
    """A provider resource called for every query."""

    name: str
    path_template: str


@dataclass
class UpstreamResult:
    """Outcome of one provider resource call."""

    endpoint_name: str
    ok: bool
    status_code: int
    payload: Any = None
    error: Optional[str] = None


@dataclass
class MergedResponse:
    """Combined payload returned to the caller."""

    kundli_data: Dict[str, Any]
    dasha_data: Any

    def to_dict(self) -> Dict[str, Any]:
        return {"kundliData": self.kundli_data, "dashaData": self.dasha_data}


KUNDLI = "kundli"
DASHA = "dasha"
PLANET_POSITION = "planet_position"

KUNDLI_ENDPOINT = UpstreamEndpointSpec(KUNDLI, "/v2/astrology/kundli")
DASHA_ENDPOINT = UpstreamEndpointSpec(DASHA, "/v2/astrology/major-dasha")
PLANET_POSITION_ENDPOINT = UpstreamEndpointSpec(PLANET_POSITION, "/v2/astrology/planet-position")

DEFAULT_ENDPOINTS: Tuple[UpstreamEndpointSpec, ...] = (
    KUNDLI_ENDPOINT,
    DASHA_ENDPOINT,
    PLANET_POSITION_ENDPOINT,
)

# Lahiri
DEFAULT_AYANAMSA = 1
