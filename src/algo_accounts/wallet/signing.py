"""
Wallet transaction signer.

Sends the whole group to the connected wallet as one ``algo_signTxn``
request and blocks until the user approves, declines, or the signing
timeout passes. Transactions the caller did not ask to sign are sent with
an empty signer list so the wallet leaves them alone.
"""

from __future__ import annotations
from typing import Any, List, Optional
import asyncio
import base64
import binascii
import logging

from algosdk import transaction

from ..runtime.errors import (
    AccountError,
    InvalidInputError,
    NoSessionError,
    SigningError,
    SigningRejectedError,
    SigningTimeoutError,
)
from ..signers.signer import Signer
from ..signers.transaction import encode_unsigned_b64, has_signature
from .connector import PairingConnector, RequestError
from .constants import SIGN_TXN_METHOD, SIGNING_TIMEOUT

logger = logging.getLogger(__name__)

# JSON-RPC codes wallets use for a user declining
REJECTION_CODES = frozenset({4001, 4100, 5000})
REJECTION_PHRASES = ("rejected", "declined")


def is_rejection(error: RequestError) -> bool:
    """
    Decide whether a wallet error means the user declined.

    Structured codes win; the message text is a fallback for wallets that
    send none.
    """
    if error.code is not None and error.code in REJECTION_CODES:
        return True
    text = error.message.lower()
    return any(phrase in text for phrase in REJECTION_PHRASES)


def classify_request_error(error: RequestError) -> AccountError:
    """Map a wallet request error to the signing error taxonomy."""
    if is_rejection(error):
        return SigningRejectedError(cause=error)
    return SigningError(f"Wallet request failed: {error.message}", details={"code": error.code})


def normalize_signed_txn(value: Any, index: int) -> Optional[bytes]:
    """
    Normalize one entry of a wallet response.

    Wallets answer with base64 strings, raw bytes or lists of byte values;
    None means the wallet did not sign.
    """
    if value is None:
        return None
    if isinstance(value, str):
        try:
            return base64.b64decode(value, validate=True)
        except binascii.Error as e:
            raise SigningError(f"Transaction at index {index} is not valid base64",
                               details={"index": index, "error": str(e)})
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, list) and all(isinstance(v, int) and 0 <= v < 256 for v in value):
        return bytes(value)
    raise SigningError(f"Unexpected signed transaction format: {type(value).__name__}",
                       details={"index": index})


def create_wallet_signer(connector: PairingConnector,
                         timeout: float = SIGNING_TIMEOUT) -> Signer:
    """
    Build a signer that asks the connected wallet to sign.

    Args:
        connector: Connector with an established session
        timeout: Seconds to wait for the user

    Returns:
        Signer over the wallet's connected accounts
    """
    async def sign(txn_group: List[transaction.Transaction], indexes: List[int]) -> List[bytes]:
        if not connector.connected:
            raise NoSessionError()

        connected = set(connector.accounts)
        for i in indexes:
            sender = txn_group[i].sender
            if sender not in connected:
                raise InvalidInputError(
                    f"Cannot sign transaction {i}: sender {sender} not in connected accounts",
                    details={"index": i, "sender": sender},
                )

        wanted = set(indexes)
        wire = []
        for i, txn in enumerate(txn_group):
            entry = {"txn": encode_unsigned_b64(txn)}
            if i not in wanted:
                entry["signers"] = []
            wire.append(entry)

        logger.info(f"Requesting wallet signature for {len(indexes)} of {len(txn_group)} transaction(s)")
        try:
            response = await asyncio.wait_for(
                connector.send_custom_request(SIGN_TXN_METHOD, [wire]), timeout
            )
        except asyncio.TimeoutError:
            raise SigningTimeoutError()
        except RequestError as e:
            raise classify_request_error(e)

        if not isinstance(response, list):
            raise SigningError("Wallet returned an unexpected response",
                               details={"type": type(response).__name__})

        signed = []
        for i in indexes:
            stx = normalize_signed_txn(response[i] if i < len(response) else None, i)
            if stx is None:
                raise SigningError(f"Transaction at index {i} was not signed by the wallet",
                                   details={"index": i})
            if not has_signature(stx):
                raise SigningError(f"Transaction at index {i} returned without a valid signature",
                                   details={"index": i})
            signed.append(stx)
        return signed

    return sign


__all__ = [
    "create_wallet_signer",
    "is_rejection",
    "classify_request_error",
    "normalize_signed_txn",
    "REJECTION_CODES",
]
