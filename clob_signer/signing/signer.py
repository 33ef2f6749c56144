"""
Deterministic secp256k1 signer.

Signs 32-byte digests with RFC 6979 nonces (the nonce is derived from the
private key and the digest, never from a random source), so signing the
same digest twice yields the same signature. Signatures are low-s
normalized and carry an Ethereum recovery id (v = 27/28).
"""

from dataclasses import dataclass
import logging

from eth_account import Account
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError as KeyValidationError

from .typed_data import EIP712Domain, TypedMessage, typed_data_digest
from ..exceptions import SigningError

logger = logging.getLogger(__name__)

DIGEST_LENGTH = 32
SIGNATURE_LENGTH = 65


@dataclass(frozen=True)
class Signature:
    """Recoverable ECDSA signature."""
    r: int
    s: int
    v: int  # 27 or 28

    def to_bytes(self) -> bytes:
        """65 bytes: r (32) || s (32) || v (1)."""
        return self.r.to_bytes(32, "big") + self.s.to_bytes(32, "big") + bytes([self.v])

    def to_hex(self) -> str:
        """0x-prefixed hex encoding of ``to_bytes()``."""
        return "0x" + self.to_bytes().hex()

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Signature":
        """Parse a 65-byte r || s || v signature."""
        if len(raw) != SIGNATURE_LENGTH:
            raise SigningError(f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(raw)}")
        v = raw[64]
        if v < 27:
            v += 27
        return cls(
            r=int.from_bytes(raw[:32], "big"),
            s=int.from_bytes(raw[32:64], "big"),
            v=v,
        )

    @classmethod
    def from_hex(cls, value: str) -> "Signature":
        """Parse a 0x-prefixed hex signature."""
        try:
            raw = bytes.fromhex(value[2:] if value.startswith("0x") else value)
        except ValueError as e:
            raise SigningError("Signature is not valid hex") from e
        return cls.from_bytes(raw)


def _check_digest(digest: bytes) -> None:
    if not isinstance(digest, (bytes, bytearray)) or len(digest) != DIGEST_LENGTH:
        length = len(digest) if isinstance(digest, (bytes, bytearray)) else type(digest).__name__
        raise SigningError(f"Digest must be {DIGEST_LENGTH} bytes, got {length}")


class Signer:
    """
    Holds a wallet private key and signs digests with it.

    The key is never exposed: it is excluded from repr/str and from every
    error message raised here.
    """

    def __init__(self, private_key: str):
        """
        Initialize signer.

        Args:
            private_key: Hex private key (with or without 0x prefix)

        Raises:
            SigningError: If the key is not a valid secp256k1 private key
        """
        try:
            account = Account.from_key(private_key)
            self._key = keys.PrivateKey(bytes(account.key))
        except Exception as e:
            # SECURITY: Never include the key itself in the message
            raise SigningError(f"Invalid private key: {type(e).__name__}") from None

        self._address = account.address
        logger.debug(f"Signer initialized for {self._address}")

    @property
    def address(self) -> str:
        """Checksummed EOA address derived from the key."""
        return self._address

    def sign(self, digest: bytes) -> Signature:
        """
        Sign a 32-byte digest.

        Args:
            digest: Message digest (32 bytes)

        Returns:
            Recoverable signature (v = 27/28)

        Raises:
            SigningError: If the digest is not 32 bytes
        """
        _check_digest(digest)
        signature = self._key.sign_msg_hash(bytes(digest))
        return Signature(r=signature.r, s=signature.s, v=signature.v + 27)

    def sign_typed_data(self, domain: EIP712Domain, message: TypedMessage) -> Signature:
        """Encode a typed message and sign its digest."""
        return self.sign(typed_data_digest(domain, message))

    def __repr__(self) -> str:
        return f"Signer(address={self._address})"

    __str__ = __repr__


def recover_address(digest: bytes, signature: Signature) -> str:
    """
    Recover the checksummed signer address from a digest and signature.

    Raises:
        SigningError: If the digest or signature is malformed
    """
    _check_digest(digest)
    if signature.v not in (27, 28):
        raise SigningError(f"Invalid recovery id: {signature.v}")

    try:
        key_signature = keys.Signature(vrs=(signature.v - 27, signature.r, signature.s))
        public_key = key_signature.recover_public_key_from_msg_hash(bytes(digest))
    except (BadSignature, KeyValidationError) as e:
        raise SigningError(f"Signature recovery failed: {type(e).__name__}") from e
    return public_key.to_checksum_address()


def verify(digest: bytes, signature: Signature, address: str) -> bool:
    """Check that ``signature`` over ``digest`` was produced by ``address``."""
    try:
        return recover_address(digest, signature).lower() == address.lower()
    except SigningError:
        return False
