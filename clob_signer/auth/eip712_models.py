"""
EIP-712 message schemas for CLOB authentication and orders.

Field order and type tags must match the exchange's schema exactly;
reordering produces a different type hash and an invalid signature.
Adapted from Polymarket's py-clob-client and python-order-utils (MIT License).
"""

from typing import Any, Optional

from ..signing.typed_data import EIP712Domain, TypedMessage


# ClobAuth (L1 authentication)
CLOB_AUTH_DOMAIN_NAME = "ClobAuthDomain"
CLOB_AUTH_DOMAIN_VERSION = "1"
CLOB_AUTH_MESSAGE = "This message attests that I control the given wallet"

CLOB_AUTH_TYPES = {
    "ClobAuth": [
        ("address", "address"),
        ("timestamp", "string"),
        ("nonce", "uint256"),
        ("message", "string"),
    ],
}

# Order (CTF exchange)
EXCHANGE_DOMAIN_NAME = "Polymarket CTF Exchange"
EXCHANGE_DOMAIN_VERSION = "1"

ORDER_TYPES = {
    "Order": [
        ("salt", "uint256"),
        ("maker", "address"),
        ("signer", "address"),
        ("taker", "address"),
        ("tokenId", "uint256"),
        ("makerAmount", "uint256"),
        ("takerAmount", "uint256"),
        ("expiration", "uint256"),
        ("nonce", "uint256"),
        ("feeRateBps", "uint256"),
        ("side", "uint8"),
        ("signatureType", "uint8"),
    ],
}


def clob_auth_domain(chain_id: int) -> EIP712Domain:
    """Domain for L1 auth messages (no verifying contract)."""
    return EIP712Domain(
        name=CLOB_AUTH_DOMAIN_NAME,
        version=CLOB_AUTH_DOMAIN_VERSION,
        chain_id=chain_id,
    )


def clob_auth_message(address: str, timestamp: str, nonce: int,
                      message: Optional[str] = None) -> TypedMessage:
    """
    Build the ClobAuth message.

    Args:
        address: Signer (EOA) address
        timestamp: Unix timestamp as string
        nonce: Auth nonce
        message: Attestation text (defaults to the exchange's fixed text)
    """
    return TypedMessage(
        primary_type="ClobAuth",
        types=CLOB_AUTH_TYPES,
        message={
            "address": address,
            "timestamp": timestamp,
            "nonce": nonce,
            "message": message if message is not None else CLOB_AUTH_MESSAGE,
        },
    )


def exchange_domain(chain_id: int, exchange: str) -> EIP712Domain:
    """Domain for orders, verified by the exchange contract."""
    return EIP712Domain(
        name=EXCHANGE_DOMAIN_NAME,
        version=EXCHANGE_DOMAIN_VERSION,
        chain_id=chain_id,
        verifying_contract=exchange,
    )


def order_message(fields: dict[str, Any]) -> TypedMessage:
    """Build the Order message from EIP-712 field values."""
    return TypedMessage(primary_type="Order", types=ORDER_TYPES, message=fields)
