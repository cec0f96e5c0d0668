"""
Transaction signer construction.

A signer is bound to one account. It is invoked with a transaction group and
the indexes that need a signature, and returns one msgpack-encoded signed
transaction per requested index, in request order.
"""

from __future__ import annotations
from typing import Awaitable, Callable, List
import base64
import logging

from algosdk import account, transaction
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from .transaction import attach_signature, bytes_to_sign

logger = logging.getLogger(__name__)

Signer = Callable[[List[transaction.Transaction], List[int]], Awaitable[List[bytes]]]

# Signs raw bytes with a key held elsewhere
SignBytes = Callable[[bytes], Awaitable[bytes]]


def remote_signer(address: str, sign_bytes: SignBytes) -> Signer:
    """
    Build a signer that delegates raw signing to a remote key holder.

    Args:
        address: Address of the signing key
        sign_bytes: Coroutine producing a 64-byte signature for a message

    Returns:
        Signer for the account
    """
    async def sign(txn_group: List[transaction.Transaction], indexes: List[int]) -> List[bytes]:
        signed = []
        for i in indexes:
            txn = txn_group[i]
            signature = await sign_bytes(bytes_to_sign(txn))
            signed.append(attach_signature(txn, signature, address))
        logger.debug(f"Signed {len(signed)} transaction(s) for {address}")
        return signed

    return sign


def local_signer(private_key: str) -> Signer:
    """
    Build a signer over an in-memory private key.

    Args:
        private_key: base64 ``algosdk`` private key (seed + public key)

    Returns:
        Signer for the key's address
    """
    address = account.address_from_private_key(private_key)
    # algosdk keys are seed || public key
    key = Ed25519PrivateKey.from_private_bytes(base64.b64decode(private_key)[:32])

    async def sign_bytes(message: bytes) -> bytes:
        return key.sign(message)

    return remote_signer(address, sign_bytes)


__all__ = ["Signer", "SignBytes", "remote_signer", "local_signer"]
