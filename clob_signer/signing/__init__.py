"""EIP-712 encoding and deterministic signing."""

from .typed_data import EIP712Domain, TypedMessage, typed_data_digest
from .signer import Signer, Signature, recover_address, verify

__all__ = [
    "EIP712Domain",
    "TypedMessage",
    "typed_data_digest",
    "Signer",
    "Signature",
    "recover_address",
    "verify",
]
