"""
EIP-712 typed structured data encoder.

Produces the exact digest the exchange (and the settlement contract) uses
to verify order and auth signatures:

    digest = keccak256(0x19 0x01 || domainSeparator || hashStruct(message))

Reference: https://eips.ethereum.org/EIPS/eip-712
"""

import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence
import logging

from eth_abi import encode as abi_encode
from eth_abi.exceptions import EncodingError as ABIEncodingError
from eth_utils import keccak, to_bytes, to_checksum_address

from ..exceptions import EncodingError

logger = logging.getLogger(__name__)

# (field name, type tag) pairs, in schema order
FieldList = Sequence[tuple[str, str]]
TypeMap = Mapping[str, FieldList]

EIP712_PREFIX = b"\x19\x01"

_ARRAY_RE = re.compile(r"^(.+)\[(\d*)\]$")
_INT_RE = re.compile(r"^(u?int)(\d+)$")
_BYTES_RE = re.compile(r"^bytes(\d+)$")


@dataclass(frozen=True)
class EIP712Domain:
    """
    Domain descriptor.

    Only the fields that are set take part in the domain type, in the
    canonical order name, version, chainId, verifyingContract, salt.
    """
    name: Optional[str] = None
    version: Optional[str] = None
    chain_id: Optional[int] = None
    verifying_contract: Optional[str] = None
    salt: Optional[bytes] = None

    def fields(self) -> list[tuple[str, str]]:
        """Domain type schema for the fields that are set."""
        candidates = [
            ("name", "string", self.name),
            ("version", "string", self.version),
            ("chainId", "uint256", self.chain_id),
            ("verifyingContract", "address", self.verifying_contract),
            ("salt", "bytes32", self.salt),
        ]
        return [(name, type_) for name, type_, value in candidates if value is not None]

    def values(self) -> dict[str, Any]:
        """Domain values keyed by their EIP-712 field names."""
        values = {
            "name": self.name,
            "version": self.version,
            "chainId": self.chain_id,
            "verifyingContract": self.verifying_contract,
            "salt": self.salt,
        }
        return {k: v for k, v in values.items() if v is not None}


@dataclass(frozen=True)
class TypedMessage:
    """One signable structure: primary type, struct schemas and values."""
    primary_type: str
    types: TypeMap
    message: Mapping[str, Any] = field(default_factory=dict)


def _base_type(type_: str) -> str:
    """Strip array suffixes: ``Person[][2]`` -> ``Person``."""
    match = _ARRAY_RE.match(type_)
    while match:
        type_ = match.group(1)
        match = _ARRAY_RE.match(type_)
    return type_


def _is_atomic_or_dynamic(type_: str) -> bool:
    if type_ in ("address", "bool", "string", "bytes"):
        return True

    int_match = _INT_RE.match(type_)
    if int_match:
        bits = int(int_match.group(2))
        return 8 <= bits <= 256 and bits % 8 == 0

    bytes_match = _BYTES_RE.match(type_)
    if bytes_match:
        return 1 <= int(bytes_match.group(1)) <= 32

    return False


def _find_dependencies(primary_type: str, types: TypeMap, found: set[str]) -> set[str]:
    """Collect every struct type reachable from ``primary_type``."""
    if primary_type in found:
        return found
    if primary_type not in types:
        raise EncodingError(f"Unknown struct type: {primary_type}")

    found.add(primary_type)
    for field_name, field_type in types[primary_type]:
        base = _base_type(field_type)
        if base in types:
            _find_dependencies(base, types, found)
        elif not _is_atomic_or_dynamic(base):
            raise EncodingError(
                f"Unsupported type tag '{field_type}' for field '{primary_type}.{field_name}'"
            )
    return found


def encode_type(primary_type: str, types: TypeMap) -> str:
    """
    Encode a struct schema as a type string.

    The primary type comes first, followed by every referenced struct type
    sorted by name, e.g. ``Mail(Person from,Person to,string contents)Person(string name,address wallet)``.
    """
    deps = _find_dependencies(primary_type, types, set())
    deps.discard(primary_type)

    encoded = []
    for name in [primary_type] + sorted(deps):
        members = ",".join(f"{type_} {field_name}" for field_name, type_ in types[name])
        encoded.append(f"{name}({members})")
    return "".join(encoded)


def type_hash(primary_type: str, types: TypeMap) -> bytes:
    """keccak256 of the encoded type string."""
    return keccak(text=encode_type(primary_type, types))


def _abi_word(type_: str, value: Any) -> bytes:
    try:
        return abi_encode([type_], [value])
    except (ABIEncodingError, TypeError, ValueError, OverflowError) as e:
        raise EncodingError(f"Cannot encode {value!r} as {type_}: {type(e).__name__}") from e


def _to_raw_bytes(type_: str, value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        try:
            return to_bytes(hexstr=value)
        except ValueError as e:
            raise EncodingError(f"Invalid hex value for {type_}: {value!r}") from e
    raise EncodingError(f"Expected bytes or hex string for {type_}, got {type(value).__name__}")


def encode_value(type_: str, value: Any, types: TypeMap) -> bytes:
    """
    Encode one field value as a 32-byte word.

    Args:
        type_: EIP-712 type tag
        value: Field value
        types: Struct schemas (for struct references)

    Returns:
        32-byte encoded value

    Raises:
        EncodingError: If the type tag is unsupported or the value does not fit
    """
    if type_ in types:
        if not isinstance(value, Mapping):
            raise EncodingError(f"Expected mapping for struct {type_}, got {type(value).__name__}")
        return hash_struct(type_, types, value)

    array_match = _ARRAY_RE.match(type_)
    if array_match:
        item_type, length = array_match.group(1), array_match.group(2)
        if not isinstance(value, (list, tuple)):
            raise EncodingError(f"Expected sequence for {type_}, got {type(value).__name__}")
        if length and len(value) != int(length):
            raise EncodingError(f"Expected {length} items for {type_}, got {len(value)}")
        return keccak(b"".join(encode_value(item_type, item, types) for item in value))

    if type_ == "string":
        if not isinstance(value, str):
            raise EncodingError(f"Expected str for string, got {type(value).__name__}")
        return keccak(text=value)

    if type_ == "bytes":
        return keccak(_to_raw_bytes(type_, value))

    if type_ == "address":
        try:
            address = to_checksum_address(value)
        except (ValueError, TypeError) as e:
            raise EncodingError(f"Invalid address: {value!r}") from e
        return _abi_word(type_, address)

    if type_ == "bool":
        if not isinstance(value, bool):
            raise EncodingError(f"Expected bool, got {type(value).__name__}")
        return _abi_word(type_, value)

    if _INT_RE.match(type_) and _is_atomic_or_dynamic(type_):
        if isinstance(value, bool):
            raise EncodingError(f"Expected integer for {type_}, got bool")
        if isinstance(value, str):
            try:
                value = int(value, 0)
            except ValueError as e:
                raise EncodingError(f"Invalid integer for {type_}: {value!r}") from e
        return _abi_word(type_, value)

    if _BYTES_RE.match(type_) and _is_atomic_or_dynamic(type_):
        raw = _to_raw_bytes(type_, value)
        if len(raw) > int(type_[5:]):
            raise EncodingError(f"Value too long for {type_}: {len(raw)} bytes")
        return _abi_word(type_, raw)

    raise EncodingError(f"Unsupported type tag: {type_}")


def encode_data(primary_type: str, types: TypeMap, data: Mapping[str, Any]) -> bytes:
    """Concatenate the type hash and every encoded field in schema order."""
    if primary_type not in types:
        raise EncodingError(f"Unknown struct type: {primary_type}")

    encoded = [type_hash(primary_type, types)]
    for field_name, field_type in types[primary_type]:
        if field_name not in data:
            raise EncodingError(f"Missing field '{field_name}' for {primary_type}")
        encoded.append(encode_value(field_type, data[field_name], types))
    return b"".join(encoded)


def hash_struct(primary_type: str, types: TypeMap, data: Mapping[str, Any]) -> bytes:
    """keccak256 of the encoded struct."""
    return keccak(encode_data(primary_type, types, data))


def domain_separator(domain: EIP712Domain) -> bytes:
    """Hash of the domain descriptor."""
    domain_fields = domain.fields()
    if not domain_fields:
        raise EncodingError("EIP712Domain must set at least one field")
    return hash_struct("EIP712Domain", {"EIP712Domain": domain_fields}, domain.values())


def typed_data_digest(domain: EIP712Domain, message: TypedMessage) -> bytes:
    """
    Compute the 32-byte digest to sign.

    Args:
        domain: Domain descriptor
        message: Typed message

    Returns:
        keccak256(0x1901 || domainSeparator || hashStruct(message))

    Raises:
        EncodingError: If the schema or any value cannot be encoded
    """
    digest = keccak(
        EIP712_PREFIX
        + domain_separator(domain)
        + hash_struct(message.primary_type, message.types, message.message)
    )
    logger.debug(f"Encoded {message.primary_type} typed data: 0x{digest.hex()}")
    return digest
