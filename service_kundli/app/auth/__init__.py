"""
Provider authentication for the Kundli service.
"""

from .credentials import load_credentials
from .token_cache import AccessTokenCache

__all__ = ["AccessTokenCache", "load_credentials"]
