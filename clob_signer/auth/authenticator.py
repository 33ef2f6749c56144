"""
Authentication handler for the CLOB.

Handles L1 (wallet signature) and L2 (API key HMAC) authentication.
Adapted from Polymarket's py-clob-client (MIT License).
"""

import time
import hmac
import hashlib
import base64
import binascii
import json
from typing import Any, Optional
import logging

from .eip712_models import clob_auth_domain, clob_auth_message
from ..models import ApiCredentials
from ..signing.signer import Signer
from ..signing.typed_data import typed_data_digest
from ..exceptions import AuthenticationError, ClobError, CredentialsNotSet
from .. import metrics

logger = logging.getLogger(__name__)

POLY_ADDRESS = "POLY_ADDRESS"
POLY_SIGNATURE = "POLY_SIGNATURE"
POLY_TIMESTAMP = "POLY_TIMESTAMP"
POLY_NONCE = "POLY_NONCE"
POLY_API_KEY = "POLY_API_KEY"
POLY_PASSPHRASE = "POLY_PASSPHRASE"


def format_hmac_body(body: Any) -> str:
    """
    Serialize a request body exactly as it is signed and sent.

    Uses ", " and ": " separators and keeps key insertion order. Strings
    are taken as already-serialized bodies.
    """
    if isinstance(body, str):
        return body
    return json.dumps(body, separators=(", ", ": "), ensure_ascii=False)


def build_hmac_signature(
    secret: str,
    timestamp: int,
    method: str,
    path: str,
    body: Optional[str] = None
) -> str:
    """
    Compute the L2 HMAC signature.

    message = str(timestamp) + method + path + body, no separators.

    Args:
        secret: API secret (url-safe base64)
        timestamp: Unix timestamp (seconds)
        method: HTTP method
        path: Request path, exactly as sent
        body: Serialized request body (omitted if None or empty)

    Returns:
        url-safe base64 HMAC-SHA256 signature

    Raises:
        AuthenticationError: If the secret is not valid base64
    """
    try:
        key = base64.urlsafe_b64decode(secret)
    except (binascii.Error, ValueError) as e:
        raise AuthenticationError(f"API secret is not valid base64: {type(e).__name__}") from None

    message = f"{timestamp}{method}{path}"
    if body:
        message += body

    digest = hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()
    return base64.urlsafe_b64encode(digest).decode("utf-8")


class Authenticator:
    """
    Builds L1 and L2 authentication headers.

    L1: EIP-712 ClobAuth signature, proves wallet ownership (API key management)
    L2: HMAC over the request, using the API secret (all trading endpoints)

    Headers are built fresh for every request and never cached.
    """

    def __init__(self, chain_id: int = 137):
        """
        Initialize authenticator.

        Args:
            chain_id: Polygon chain ID (default: 137)
        """
        self.chain_id = chain_id

    def sign_clob_auth_message(self, signer: Signer, timestamp: int, nonce: int = 0) -> str:
        """
        Sign the ClobAuth attestation.

        Same (address, timestamp, nonce) always yields the same signature.

        Returns:
            0x-prefixed 65-byte signature
        """
        digest = typed_data_digest(
            clob_auth_domain(self.chain_id),
            clob_auth_message(signer.address, str(timestamp), nonce)
        )
        return signer.sign(digest).to_hex()

    def create_l1_headers(self, signer: Signer, nonce: Optional[int] = None) -> dict[str, str]:
        """
        Create L1 authentication headers.

        The timestamp is taken from the wall clock here, at build time.

        Args:
            signer: Wallet signer
            nonce: Auth nonce (default: 0)

        Returns:
            L1 headers dict

        Raises:
            AuthenticationError: If signing fails
        """
        timestamp = int(time.time())
        nonce = nonce if nonce is not None else 0

        try:
            signature = self.sign_clob_auth_message(signer, timestamp, nonce)
        except ClobError:
            raise
        except Exception as e:
            # SECURITY: Sanitize error message to prevent credential leakage
            error_type = type(e).__name__
            logger.error(f"Failed to create L1 headers: {error_type}")
            raise AuthenticationError(f"L1 signature failed: {error_type}") from None

        headers = {
            POLY_ADDRESS: signer.address,
            POLY_SIGNATURE: signature,
            POLY_TIMESTAMP: str(timestamp),
            POLY_NONCE: str(nonce),
        }

        metrics.track_auth_headers("L1")
        logger.debug(f"Created L1 headers for {signer.address}")
        return headers

    def create_l2_headers(
        self,
        signer: Signer,
        credentials: Optional[ApiCredentials],
        method: str,
        path: str,
        body: Any = None
    ) -> tuple[dict[str, str], Optional[str]]:
        """
        Create L2 authentication headers.

        Args:
            signer: Wallet signer (supplies POLY_ADDRESS)
            credentials: API credentials
            method: HTTP method (GET, POST, DELETE)
            path: Request path
            body: Request body (object or pre-serialized string)

        Returns:
            (headers, body_text): body_text is the exact string that was
            signed and must be sent, or None when there is no body

        Raises:
            CredentialsNotSet: If credentials are missing
            AuthenticationError: If the secret is malformed
        """
        if credentials is None:
            raise CredentialsNotSet()

        timestamp = int(time.time())
        body_text = format_hmac_body(body) if body is not None else None

        signature = build_hmac_signature(
            credentials.secret,
            timestamp,
            method.upper(),
            path,
            body_text
        )

        headers = {
            POLY_ADDRESS: signer.address,
            POLY_SIGNATURE: signature,
            POLY_TIMESTAMP: str(timestamp),
            POLY_API_KEY: credentials.api_key,
            POLY_PASSPHRASE: credentials.passphrase,
        }

        metrics.track_auth_headers("L2")
        logger.debug(f"Created L2 headers for {method} {path}")
        return headers, body_text

    def verify_l2_signature(
        self,
        secret: str,
        signature: str,
        timestamp: int,
        method: str,
        path: str,
        body: Optional[str] = None
    ) -> bool:
        """
        Verify an L2 HMAC signature.

        Returns:
            True if signature is valid
        """
        expected = build_hmac_signature(secret, timestamp, method.upper(), path, body)
        return hmac.compare_digest(signature, expected)
