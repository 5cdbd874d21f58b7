"""
Loading of provider credentials from service configuration.
"""

from shared.config import BaseConfig
from shared.errors import ConfigurationError
from service_kundli.app.domain.models import Credentials


def load_credentials(config: BaseConfig) -> Credentials:
    """Build provider credentials, failing when either secret is absent."""
    missing = [
        name
        for name, value in (("client_id", config.client_id), ("client_secret", config.client_secret))
        if not value
    ]
    if missing:
        raise ConfigurationError(
            "API credentials are not set up in the service environment.",
            details={"missing": missing},
        )
    return Credentials(client_id=config.client_id, client_secret=config.client_secret)
