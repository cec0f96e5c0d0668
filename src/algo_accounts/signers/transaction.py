"""
Algorand transaction encoding helpers.

Wraps the ``algosdk`` msgpack codec, which works in base64 strings, with the
raw-bytes forms the signers exchange.
"""

from __future__ import annotations
from typing import Optional, Union
import base64

from algosdk import encoding, transaction

from ..runtime.errors import InvalidInputError

# Domain separation prefix for transaction signatures
TX_PREFIX = b"TX"


def encode_unsigned(txn: transaction.Transaction) -> bytes:
    """Canonical msgpack encoding of an unsigned transaction."""
    return base64.b64decode(encoding.msgpack_encode(txn))


def encode_unsigned_b64(txn: transaction.Transaction) -> str:
    """Base64 msgpack encoding of an unsigned transaction (wallet wire format)."""
    return encoding.msgpack_encode(txn)


def bytes_to_sign(txn: transaction.Transaction) -> bytes:
    """
    Get the signable byte form of a transaction.

    Args:
        txn: Transaction to sign

    Returns:
        ``b"TX"`` followed by the canonical msgpack encoding
    """
    return TX_PREFIX + encode_unsigned(txn)


def attach_signature(txn: transaction.Transaction, signature: bytes,
                     signer_address: Optional[str] = None) -> bytes:
    """
    Combine a transaction with a raw Ed25519 signature.

    Args:
        txn: The signed transaction
        signature: 64-byte signature over ``bytes_to_sign(txn)``
        signer_address: Address that produced the signature; recorded as the
            authorizing address when it differs from the sender (rekeyed
            accounts)

    Returns:
        msgpack-encoded signed transaction
    """
    if len(signature) != 64:
        raise InvalidInputError(f"Ed25519 signature must be 64 bytes, got {len(signature)}")

    auth_addr = signer_address if signer_address and signer_address != txn.sender else None
    stx = transaction.SignedTransaction(
        txn,
        base64.b64encode(signature).decode("ascii"),
        authorizing_address=auth_addr,
    )
    return base64.b64decode(encoding.msgpack_encode(stx))


def decode_signed(stx: Union[bytes, str]):
    """
    Decode a signed transaction from raw bytes or base64.

    Raises:
        InvalidInputError: If the data is not a msgpack transaction
    """
    enc = stx if isinstance(stx, str) else base64.b64encode(stx).decode("ascii")
    try:
        return encoding.msgpack_decode(enc)
    except Exception as e:
        raise InvalidInputError("Could not decode signed transaction", cause=e)


def has_signature(stx: Union[bytes, str]) -> bool:
    """Check that encoded bytes carry a signature, multisig or logic signature."""
    try:
        decoded = decode_signed(stx)
    except InvalidInputError:
        return False

    if isinstance(decoded, transaction.SignedTransaction):
        return bool(decoded.signature)
    return isinstance(decoded, (transaction.MultisigTransaction,
                                transaction.LogicSigTransaction))


__all__ = [
    "TX_PREFIX",
    "encode_unsigned",
    "encode_unsigned_b64",
    "bytes_to_sign",
    "attach_signature",
    "decode_signed",
    "has_signature",
]
