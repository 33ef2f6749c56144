"""
Tests for the EIP-712 typed-data encoder.

Uses the "Ether Mail" example from EIP-712 as the reference vector.
"""

import pytest

from clob_signer.signing.typed_data import (
    EIP712Domain,
    TypedMessage,
    domain_separator,
    encode_type,
    hash_struct,
    type_hash,
    typed_data_digest,
)
from clob_signer.auth.eip712_models import ORDER_TYPES, exchange_domain, order_message
from clob_signer.exceptions import EncodingError


MAIL_TYPES = {
    "Person": [
        ("name", "string"),
        ("wallet", "address"),
    ],
    "Mail": [
        ("from", "Person"),
        ("to", "Person"),
        ("contents", "string"),
    ],
}

MAIL_MESSAGE = {
    "from": {"name": "Cow", "wallet": "0xCD2a3d9F938E13CD947Ec05AbC7FE734Df8DD826"},
    "to": {"name": "Bob", "wallet": "0xbBbBBBBbbBBBbbbBbbBbbbbBBbBbbbbBbBbbBBbB"},
    "contents": "Hello, Bob!",
}

MAIL_DOMAIN = EIP712Domain(
    name="Ether Mail",
    version="1",
    chain_id=1,
    verifying_contract="0xCcCCccccCCCCcCCCCCCcCcCccCcCCCcCcccccccC",
)

EXCHANGE = "0x4bFb41d5B3570DeFd03C39a9A4D8dE6Bd8B8982E"


def _order_fields(**overrides):
    fields = {
        "salt": 479249096354,
        "maker": "0xCD2a3d9F938E13CD947Ec05AbC7FE734Df8DD826",
        "signer": "0xCD2a3d9F938E13CD947Ec05AbC7FE734Df8DD826",
        "taker": "0x0000000000000000000000000000000000000000",
        "tokenId": 1234,
        "makerAmount": 1540000,
        "takerAmount": 10000000,
        "expiration": 0,
        "nonce": 0,
        "feeRateBps": 0,
        "side": 0,
        "signatureType": 0,
    }
    fields.update(overrides)
    return fields


class TestEncodeType:
    """Type string encoding."""

    def test_referenced_types_follow_primary(self):
        """Referenced structs are appended after the primary type."""
        assert encode_type("Mail", MAIL_TYPES) == (
            "Mail(Person from,Person to,string contents)Person(string name,address wallet)"
        )

    def test_mail_type_hash(self):
        assert type_hash("Mail", MAIL_TYPES).hex() == (
            "a0cedeb2dc280ba39b857546d74f5549c3a1d7bdc2dd96bf881f76108e23dac2"
        )

    def test_referenced_types_sorted_by_name(self):
        types = {
            "Top": [("z", "Zeta"), ("a", "Alpha")],
            "Zeta": [("value", "uint256")],
            "Alpha": [("value", "bool")],
        }
        assert encode_type("Top", types) == "Top(Zeta z,Alpha a)Alpha(bool value)Zeta(uint256 value)"

    def test_order_type_string(self):
        assert encode_type("Order", ORDER_TYPES) == (
            "Order(uint256 salt,address maker,address signer,address taker,uint256 tokenId,"
            "uint256 makerAmount,uint256 takerAmount,uint256 expiration,uint256 nonce,"
            "uint256 feeRateBps,uint8 side,uint8 signatureType)"
        )


class TestDigest:
    """Domain separator, struct hash and final digest."""

    def test_mail_domain_separator(self):
        assert domain_separator(MAIL_DOMAIN).hex() == (
            "f2cee375fa42b42143804025fc449deafd50cc031ca257e0b194a650a912090f"
        )

    def test_mail_hash_struct(self):
        assert hash_struct("Mail", MAIL_TYPES, MAIL_MESSAGE).hex() == (
            "c52c0ee5d84264471806290a3f2c4cecfc5490626bf912d01f240d7a274b371e"
        )

    def test_mail_digest(self):
        digest = typed_data_digest(MAIL_DOMAIN, TypedMessage("Mail", MAIL_TYPES, MAIL_MESSAGE))
        assert digest.hex() == "be609aee343fb3c4b28e1df9e632fca64fcfaede20f02e86244efddf30957bd2"

    def test_digest_is_pure(self):
        """Same inputs always give the same digest."""
        message = order_message(_order_fields())
        domain = exchange_domain(137, EXCHANGE)
        assert typed_data_digest(domain, message) == typed_data_digest(domain, message)
        assert len(typed_data_digest(domain, message)) == 32

    @pytest.mark.parametrize("field,value", [
        ("salt", 479249096355),
        ("makerAmount", 1540001),
        ("side", 1),
        ("signatureType", 2),
        ("taker", "0xbBbBBBBbbBBBbbbBbbBbbbbBBbBbbbbBbBbbBBbB"),
    ])
    def test_any_changed_field_changes_digest(self, field, value):
        domain = exchange_domain(137, EXCHANGE)
        base = typed_data_digest(domain, order_message(_order_fields()))
        changed = typed_data_digest(domain, order_message(_order_fields(**{field: value})))
        assert base != changed

    def test_domain_changes_digest(self):
        message = order_message(_order_fields())
        assert typed_data_digest(exchange_domain(137, EXCHANGE), message) != \
            typed_data_digest(exchange_domain(80002, EXCHANGE), message)

    def test_field_order_changes_digest(self):
        swapped = {"Order": list(ORDER_TYPES["Order"])}
        swapped["Order"][1], swapped["Order"][2] = swapped["Order"][2], swapped["Order"][1]

        fields = _order_fields(signer="0xbBbBBBBbbBBBbbbBbbBbbbbBBbBbbbbBbBbbBBbB")
        domain = exchange_domain(137, EXCHANGE)
        assert typed_data_digest(domain, TypedMessage("Order", ORDER_TYPES, fields)) != \
            typed_data_digest(domain, TypedMessage("Order", swapped, fields))

    def test_matches_eth_account_encoder(self):
        """Digest agrees with eth_account's typed-data implementation."""
        from eth_account.messages import encode_typed_data
        from eth_utils import keccak

        fields = _order_fields()
        signable = encode_typed_data(full_message={
            "types": {
                "EIP712Domain": [
                    {"name": "name", "type": "string"},
                    {"name": "version", "type": "string"},
                    {"name": "chainId", "type": "uint256"},
                    {"name": "verifyingContract", "type": "address"},
                ],
                "Order": [{"name": n, "type": t} for n, t in ORDER_TYPES["Order"]],
            },
            "primaryType": "Order",
            "domain": {
                "name": "Polymarket CTF Exchange",
                "version": "1",
                "chainId": 137,
                "verifyingContract": EXCHANGE,
            },
            "message": fields,
        })
        expected = keccak(b"\x19" + signable.version + signable.header + signable.body)

        assert typed_data_digest(exchange_domain(137, EXCHANGE), order_message(fields)) == expected


class TestEncodingErrors:
    """Malformed schemas and values raise EncodingError."""

    def test_unknown_type_tag(self):
        types = {"Thing": [("value", "uint257")]}
        with pytest.raises(EncodingError):
            encode_type("Thing", types)

    def test_unknown_primary_type(self):
        with pytest.raises(EncodingError):
            hash_struct("Missing", MAIL_TYPES, {})

    def test_missing_field(self):
        message = dict(MAIL_MESSAGE)
        del message["contents"]
        with pytest.raises(EncodingError, match="contents"):
            hash_struct("Mail", MAIL_TYPES, message)

    def test_value_out_of_range(self):
        with pytest.raises(EncodingError):
            hash_struct("Order", ORDER_TYPES, _order_fields(side=256))

    def test_negative_uint(self):
        with pytest.raises(EncodingError):
            hash_struct("Order", ORDER_TYPES, _order_fields(nonce=-1))

    def test_bad_address(self):
        with pytest.raises(EncodingError):
            hash_struct("Order", ORDER_TYPES, _order_fields(maker="0x1234"))

    def test_fixed_array_length(self):
        types = {"Pair": [("values", "uint256[2]")]}
        assert len(hash_struct("Pair", types, {"values": [1, 2]})) == 32
        with pytest.raises(EncodingError):
            hash_struct("Pair", types, {"values": [1, 2, 3]})

    def test_empty_domain(self):
        with pytest.raises(EncodingError):
            domain_separator(EIP712Domain())
