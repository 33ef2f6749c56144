"""
Custom exceptions for the CLOB signing client.

Provides typed exceptions so callers can tell caller bugs (encoding,
signing, validation) apart from recoverable states (missing credentials)
and opaque transport failures.
"""

from typing import Optional, Any


class ClobError(Exception):
    """Base exception for all client errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(ClobError):
    """Unsupported chain or missing contract configuration."""
    pass


# Signing core
class EncodingError(ClobError):
    """Typed-data schema or value cannot be encoded."""
    pass


class SigningError(ClobError):
    """Digest or private key is malformed."""
    pass


class AuthenticationError(ClobError):
    """Authentication headers could not be built."""
    pass


class CredentialsNotSet(AuthenticationError):
    """L2 request attempted before API credentials were derived or set."""

    def __init__(self, message: str = "API credentials are not set. Create or derive an API key first."):
        super().__init__(message)


# Input validation
class ValidationError(ClobError):
    """Input validation failed."""
    pass


class InvalidOrderParameters(ValidationError):
    """Order price, size, tick size or token id is out of bounds."""

    def __init__(self, message: str, field: Optional[str] = None, value: Optional[Any] = None):
        super().__init__(message, {"field": field, "value": value})
        self.field = field
        self.value = value


class MissingFunderAddress(ValidationError):
    """Proxy signature type used without a funder address."""

    def __init__(self, message: str, signature_type: Optional[int] = None):
        super().__init__(message, {"signature_type": signature_type})
        self.signature_type = signature_type


# Transport
class APIError(ClobError):
    """API request failed."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 response: Optional[Any] = None):
        super().__init__(message, {"status_code": status_code, "response": response})
        self.status_code = status_code
        self.response = response


class TimeoutError(ClobError):
    """Request timed out."""
    pass
