"""
API credential store.

Holds the single (API key, secret, passphrase) triple used for L2 headers.
Thread-safe: credentials are immutable objects published by reference
swap, so a reader always sees either the old or the new triple, never a
mix of both.
"""

import threading
from typing import Optional
import logging

from ..models import ApiCredentials
from ..exceptions import CredentialsNotSet

logger = logging.getLogger(__name__)


class CredentialStore:
    """Single, atomically replaceable credential slot."""

    def __init__(self, credentials: Optional[ApiCredentials] = None):
        """
        Initialize store.

        Args:
            credentials: Initial credentials (optional)
        """
        self._lock = threading.Lock()
        self._credentials: Optional[ApiCredentials] = credentials

    def set(self, credentials: ApiCredentials) -> None:
        """
        Publish new credentials, replacing the current ones.

        Args:
            credentials: Complete credential triple
        """
        if not isinstance(credentials, ApiCredentials):
            raise TypeError(f"Expected ApiCredentials, got {type(credentials).__name__}")

        with self._lock:
            self._credentials = credentials

        logger.info(f"API credentials set (key={credentials.api_key})")

    def get(self) -> Optional[ApiCredentials]:
        """Current credentials, or None if never set."""
        with self._lock:
            return self._credentials

    def require(self) -> ApiCredentials:
        """
        Current credentials for an L2 request.

        Raises:
            CredentialsNotSet: If no credentials have been set
        """
        credentials = self.get()
        if credentials is None:
            raise CredentialsNotSet()
        return credentials

    def has_credentials(self) -> bool:
        """Check if credentials are set."""
        return self.get() is not None

    def clear(self) -> None:
        """Forget the current credentials."""
        with self._lock:
            self._credentials = None
            logger.info("Cleared API credentials")
