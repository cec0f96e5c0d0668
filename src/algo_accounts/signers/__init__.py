"""
Transaction signers and encoding helpers.
"""

from .signer import Signer, SignBytes, remote_signer, local_signer
from .transaction import (
    TX_PREFIX,
    encode_unsigned,
    encode_unsigned_b64,
    bytes_to_sign,
    attach_signature,
    decode_signed,
    has_signature,
)

__all__ = [
    "Signer",
    "SignBytes",
    "remote_signer",
    "local_signer",
    "TX_PREFIX",
    "encode_unsigned",
    "encode_unsigned_b64",
    "bytes_to_sign",
    "attach_signature",
    "decode_signed",
    "has_signature",
]
