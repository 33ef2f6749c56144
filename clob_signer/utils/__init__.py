"""Utility modules for the CLOB client."""

from .cache import TTLCache, MarketMetadataCache
from .numeric import to_decimal, to_token_units
from .structured_logging import CredentialRedactionFilter, redact_credentials

__all__ = [
    "TTLCache",
    "MarketMetadataCache",
    "to_decimal",
    "to_token_units",
    "CredentialRedactionFilter",
    "redact_credentials",
]
