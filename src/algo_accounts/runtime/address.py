"""
Algorand address encoding.

An address is the base32 encoding (padding stripped) of the 32-byte Ed25519
public key followed by a 4-byte checksum: the last four bytes of the
SHA-512/256 digest of the public key.
"""

from __future__ import annotations
import base64

from cryptography.hazmat.primitives import hashes

from .errors import InvalidInputError

PUBLIC_KEY_LENGTH = 32
CHECKSUM_LENGTH = 4
ADDRESS_LENGTH = 58


def sha512_256(data: bytes) -> bytes:
    """Compute the SHA-512/256 digest of data."""
    digest = hashes.Hash(hashes.SHA512_256())
    digest.update(data)
    return digest.finalize()


def _checksum(public_key: bytes) -> bytes:
    return sha512_256(public_key)[-CHECKSUM_LENGTH:]


def encode_address(public_key: bytes) -> str:
    """
    Derive the Algorand address for a public key.

    Args:
        public_key: 32-byte Ed25519 public key

    Returns:
        58-character address

    Raises:
        InvalidInputError: If the key is not 32 bytes
    """
    if len(public_key) != PUBLIC_KEY_LENGTH:
        raise InvalidInputError(
            f"Ed25519 public key must be {PUBLIC_KEY_LENGTH} bytes, got {len(public_key)}"
        )
    raw = public_key + _checksum(public_key)
    return base64.b32encode(raw).decode("ascii").rstrip("=")


def decode_address(address: str) -> bytes:
    """
    Recover the public key from an Algorand address.

    Args:
        address: 58-character address

    Returns:
        32-byte public key

    Raises:
        InvalidInputError: If the address is malformed or its checksum is wrong
    """
    if not isinstance(address, str) or len(address) != ADDRESS_LENGTH:
        raise InvalidInputError(f"Invalid Algorand address: {address!r}",
                                hint="Addresses are 58 base32 characters.")

    padding = "=" * (-len(address) % 8)
    try:
        raw = base64.b32decode(address + padding)
    except ValueError as e:
        raise InvalidInputError(f"Invalid Algorand address: {address!r}", cause=e)

    public_key, checksum = raw[:PUBLIC_KEY_LENGTH], raw[PUBLIC_KEY_LENGTH:]
    if checksum != _checksum(public_key):
        raise InvalidInputError(f"Invalid Algorand address checksum: {address!r}")
    return public_key


def is_valid_address(address: str) -> bool:
    """Check whether a string is a well-formed Algorand address."""
    try:
        decode_address(address)
        return True
    except InvalidInputError:
        return False


def public_key_b64_to_address(public_key_b64: str) -> str:
    """Derive an address from a base64-encoded public key (Vault wire format)."""
    try:
        public_key = base64.b64decode(public_key_b64, validate=True)
    except ValueError as e:
        raise InvalidInputError("Public key is not valid base64", cause=e)
    return encode_address(public_key)


__all__ = [
    "encode_address",
    "decode_address",
    "is_valid_address",
    "public_key_b64_to_address",
    "sha512_256",
]
