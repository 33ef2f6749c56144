"""Authentication modules for the CLOB client."""

from .authenticator import Authenticator, build_hmac_signature, format_hmac_body
from .credentials import CredentialStore

__all__ = ["Authenticator", "CredentialStore", "build_hmac_signature", "format_hmac_body"]
