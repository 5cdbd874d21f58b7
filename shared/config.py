"""
Shared configuration management for the Kundli proxy.
"""

from typing import Annotated, Any, List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="KUNDLI_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    env: str = "local"
    log_level: str = "info"
    cors_origins: Annotated[List[str], NoDecode] = ["*"]

    # Provider credentials, supplied out-of-band
    client_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("PROKERALA_CLIENT_ID", "KUNDLI_CLIENT_ID"),
    )
    client_secret: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("PROKERALA_CLIENT_SECRET", "KUNDLI_CLIENT_SECRET"),
        repr=False,
    )

    # Provider endpoints
    token_url: str = "https://api.prokerala.com/token"
    api_base_url: str = "https://api.prokerala.com"

    # Token cache
    token_safety_margin_seconds: int = 300

    # Upstream calls
    upstream_timeout_seconds: float = 15.0
    include_planet_positions: bool = True

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_cors_origins(cls, value: Any) -> Any:
        """Accept a comma-separated origin list from the environment."""
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)

