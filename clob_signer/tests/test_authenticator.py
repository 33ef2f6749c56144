"""
Tests for L1 (wallet signature) and L2 (HMAC) authentication headers.
"""

import pytest
from unittest.mock import patch
from eth_utils import keccak

from clob_signer.auth.authenticator import (
    Authenticator,
    build_hmac_signature,
    format_hmac_body,
    POLY_ADDRESS,
    POLY_API_KEY,
    POLY_NONCE,
    POLY_PASSPHRASE,
    POLY_SIGNATURE,
    POLY_TIMESTAMP,
)
from clob_signer.auth.eip712_models import CLOB_AUTH_MESSAGE, clob_auth_domain, clob_auth_message
from clob_signer.models import ApiCredentials
from clob_signer.signing.signer import Signer, Signature, recover_address
from clob_signer.signing.typed_data import typed_data_digest
from clob_signer.exceptions import AuthenticationError, CredentialsNotSet


PRIVATE_KEY = "0x" + "ab" * 32
SECRET = "AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA="


@pytest.fixture
def signer():
    return Signer(PRIVATE_KEY)


@pytest.fixture
def credentials():
    return ApiCredentials(api_key="test-key", secret=SECRET, passphrase="test-passphrase")


class TestHmacSignature:
    """L2 HMAC computation."""

    def test_golden_vector(self):
        signature = build_hmac_signature(
            SECRET,
            1000000,
            "test-sign",
            "/orders",
            format_hmac_body({"hash": "0x123"})
        )
        assert signature == "ZwAdJKvoYRlEKDkNMwd5BuwNNtg93kNaR_oU2HrfVvc="

    def test_deterministic(self):
        first = build_hmac_signature(SECRET, 1700000000, "GET", "/data/orders")
        second = build_hmac_signature(SECRET, 1700000000, "GET", "/data/orders")
        assert first == second

    def test_empty_body_same_as_no_body(self):
        assert build_hmac_signature(SECRET, 1, "DELETE", "/cancel-all", "") == \
            build_hmac_signature(SECRET, 1, "DELETE", "/cancel-all", None)

    @pytest.mark.parametrize("kwargs", [
        {"timestamp": 1000001},
        {"method": "POST"},
        {"path": "/order"},
        {"body": '{"hash": "0x124"}'},
    ])
    def test_any_input_changes_signature(self, kwargs):
        base = dict(timestamp=1000000, method="GET", path="/orders", body='{"hash": "0x123"}')
        changed = {**base, **kwargs}
        assert build_hmac_signature(SECRET, **base) != build_hmac_signature(SECRET, **changed)

    def test_invalid_secret(self):
        with pytest.raises(AuthenticationError):
            build_hmac_signature("abc", 1000000, "GET", "/orders")

    def test_body_format(self):
        """Bodies use ', ' and ': ' separators and keep key order."""
        body = {"orderID": "0xabc", "owner": "key", "nested": {"b": 1, "a": [1, 2]}}
        assert format_hmac_body(body) == (
            '{"orderID": "0xabc", "owner": "key", "nested": {"b": 1, "a": [1, 2]}}'
        )
        assert format_hmac_body(["a", "b"]) == '["a", "b"]'
        assert format_hmac_body('{"raw":true}') == '{"raw":true}'


class TestL1Headers:
    """ClobAuth signature headers."""

    def test_header_set(self, signer):
        with patch("clob_signer.auth.authenticator.time.time", return_value=1700000000.7):
            headers = Authenticator(chain_id=137).create_l1_headers(signer)

        assert set(headers) == {POLY_ADDRESS, POLY_SIGNATURE, POLY_TIMESTAMP, POLY_NONCE}
        assert headers[POLY_ADDRESS] == signer.address
        assert headers[POLY_TIMESTAMP] == "1700000000"
        assert headers[POLY_NONCE] == "0"
        assert headers[POLY_SIGNATURE].startswith("0x")
        assert len(headers[POLY_SIGNATURE]) == 132

    def test_explicit_nonce(self, signer):
        headers = Authenticator().create_l1_headers(signer, nonce=7)
        assert headers[POLY_NONCE] == "7"

    def test_same_inputs_same_signature(self, signer):
        auth = Authenticator(chain_id=137)
        with patch("clob_signer.auth.authenticator.time.time", return_value=1700000000):
            first = auth.create_l1_headers(signer, nonce=3)
            second = auth.create_l1_headers(signer, nonce=3)
        assert first == second

    def test_timestamp_captured_per_call(self, signer):
        auth = Authenticator(chain_id=137)
        with patch("clob_signer.auth.authenticator.time.time", side_effect=[1700000000, 1700000001]):
            first = auth.create_l1_headers(signer)
            second = auth.create_l1_headers(signer)
        assert first[POLY_TIMESTAMP] != second[POLY_TIMESTAMP]
        assert first[POLY_SIGNATURE] != second[POLY_SIGNATURE]

    def test_signature_recovers_to_signer(self, signer):
        auth = Authenticator(chain_id=137)
        with patch("clob_signer.auth.authenticator.time.time", return_value=1700000000):
            headers = auth.create_l1_headers(signer)

        digest = typed_data_digest(
            clob_auth_domain(137),
            clob_auth_message(signer.address, "1700000000", 0)
        )
        assert recover_address(digest, Signature.from_hex(headers[POLY_SIGNATURE])) == signer.address

    def test_chain_id_in_domain(self, signer):
        assert Authenticator(chain_id=137).sign_clob_auth_message(signer, 1700000000) != \
            Authenticator(chain_id=80002).sign_clob_auth_message(signer, 1700000000)

    def test_digest_matches_poly_eip712_structs(self, signer):
        """Our ClobAuth digest equals the one produced by poly_eip712_structs."""
        from poly_eip712_structs import EIP712Struct, Address, String, Uint, make_domain

        class ClobAuth(EIP712Struct):
            address = Address()
            timestamp = String()
            nonce = Uint()
            message = String()

        reference = ClobAuth(
            address=signer.address,
            timestamp="1700000000",
            nonce=5,
            message=CLOB_AUTH_MESSAGE,
        )
        domain = make_domain(name="ClobAuthDomain", version="1", chainId=137)
        expected = keccak(reference.signable_bytes(domain))

        digest = typed_data_digest(
            clob_auth_domain(137),
            clob_auth_message(signer.address, "1700000000", 5)
        )
        assert digest == expected


class TestL2Headers:
    """HMAC request headers."""

    def test_header_set(self, signer, credentials):
        with patch("clob_signer.auth.authenticator.time.time", return_value=1000000):
            headers, body_text = Authenticator().create_l2_headers(
                signer, credentials, "POST", "/order", {"hash": "0x123"}
            )

        assert set(headers) == {
            POLY_ADDRESS, POLY_SIGNATURE, POLY_TIMESTAMP, POLY_API_KEY, POLY_PASSPHRASE
        }
        assert headers[POLY_ADDRESS] == signer.address
        assert headers[POLY_API_KEY] == "test-key"
        assert headers[POLY_PASSPHRASE] == "test-passphrase"
        assert headers[POLY_TIMESTAMP] == "1000000"
        assert body_text == '{"hash": "0x123"}'
        assert headers[POLY_SIGNATURE] == build_hmac_signature(
            SECRET, 1000000, "POST", "/order", body_text
        )

    def test_no_body(self, signer, credentials):
        headers, body_text = Authenticator().create_l2_headers(signer, credentials, "GET", "/auth/api-keys")
        assert body_text is None
        assert Authenticator().verify_l2_signature(
            SECRET, headers[POLY_SIGNATURE], int(headers[POLY_TIMESTAMP]), "GET", "/auth/api-keys"
        )

    def test_method_is_upper_cased(self, signer, credentials):
        with patch("clob_signer.auth.authenticator.time.time", return_value=1000000):
            lower, _ = Authenticator().create_l2_headers(signer, credentials, "delete", "/cancel-all")
            upper, _ = Authenticator().create_l2_headers(signer, credentials, "DELETE", "/cancel-all")
        assert lower[POLY_SIGNATURE] == upper[POLY_SIGNATURE]

    def test_missing_credentials(self, signer):
        with pytest.raises(CredentialsNotSet):
            Authenticator().create_l2_headers(signer, None, "GET", "/data/orders")

    def test_secret_not_in_headers(self, signer, credentials):
        headers, _ = Authenticator().create_l2_headers(signer, credentials, "GET", "/data/orders")
        assert SECRET not in headers.values()
