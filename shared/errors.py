"""
Shared error handling for the Kundli proxy.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error envelope returned to callers."""

    error: str


class AccessLayerException(Exception):
    """Base exception for proxy services."""

    http_status: int = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(error=self.message)


class ConfigurationError(AccessLayerException):
    """Service is missing required configuration."""

    http_status = 500

    def __init__(self, message: str = "Service is not configured", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class ValidationError(AccessLayerException):
    """Validation-related errors."""

    http_status = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class AuthError(AccessLayerException):
    """Token exchange with the provider failed."""

    http_status = 500

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHENTICATION_ERROR", message, details)


class UpstreamError(AccessLayerException):
    """A provider resource call failed."""

    http_status = 500

    def __init__(self, endpoint: str, message: str = "External service error", details: Optional[Dict[str, Any]] = None):
        self.endpoint = endpoint
        super().__init__("EXTERNAL_SERVICE_ERROR", f"{endpoint}: {message}", {"endpoint": endpoint, **(details or {})})
