"""
Adapters package for the Kundli Service.

HTTP client wrappers for the astrology provider:

- ProviderTokenClient: client-credentials token exchange
- ProviderClient: concurrent resource fan-out

Keep adapters thin and side-effect free outside of explicit calls. No retries
happen here; failures are reported to the caller as they occurred.
"""

from .token_client import ProviderTokenClient
from .provider_client import ProviderClient

__all__ = [
    "ProviderTokenClient",
    "ProviderClient",
]
