"""
Tests for Algorand address encoding.
"""

import base64

import pytest
from algosdk import encoding

from algo_accounts.runtime.address import (
    decode_address,
    encode_address,
    is_valid_address,
    public_key_b64_to_address,
    sha512_256,
)
from algo_accounts.runtime.errors import ErrorCode, InvalidInputError

from helpers import mk_account


class TestEncodeAddress:
    """Address derivation from public keys."""

    def test_matches_algosdk(self):
        for _ in range(5):
            _, address = mk_account()
            public_key = encoding.decode_address(address)
            assert encode_address(public_key) == address

    def test_zero_key(self):
        # Well-known address of the all-zero key
        assert encode_address(bytes(32)) == "AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAY5HFKQ"

    def test_length(self):
        assert len(encode_address(bytes(range(32)))) == 58

    def test_rejects_wrong_key_length(self):
        with pytest.raises(InvalidInputError) as exc:
            encode_address(b"\x01" * 31)
        assert exc.value.code == ErrorCode.INVALID

    def test_from_base64_public_key(self):
        _, address = mk_account()
        b64 = base64.b64encode(encoding.decode_address(address)).decode()
        assert public_key_b64_to_address(b64) == address

    def test_from_invalid_base64(self):
        with pytest.raises(InvalidInputError):
            public_key_b64_to_address("not base64!")


class TestDecodeAddress:
    """Address parsing and validation."""

    def test_roundtrip(self):
        key = bytes(range(32))
        assert decode_address(encode_address(key)) == key

    def test_bad_checksum(self):
        _, address = mk_account()
        swap = "A" if address[10] != "A" else "B"
        tampered = address[:10] + swap + address[11:]
        assert not is_valid_address(tampered)
        with pytest.raises(InvalidInputError):
            decode_address(tampered)

    @pytest.mark.parametrize("value", ["", "ABC", "a" * 58, None])
    def test_malformed(self, value):
        assert not is_valid_address(value)

    def test_valid(self):
        _, address = mk_account()
        assert is_valid_address(address)


def test_sha512_256_known_vector():
    # SHA-512/256 of the empty string
    assert sha512_256(b"").hex() == "c672b8d1ef56ed28ab87c3622c5114069bdd3ad7b8f9737498d0c01ecef0967a"
