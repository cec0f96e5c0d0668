"""
Mobile wallet backend: WalletConnect pairing, session persistence and the
wallet account provider.
"""

from .constants import ALGORAND_CHAIN_IDS, CHAIN_ID_TO_NETWORK, SIGN_TXN_METHOD
from .types import PairingOptions, PairingRequest, PairingResult, SessionStatus, StoredSession
from .session_store import SessionStore
from .connector import PairingConnector, Connected, Rejected, RequestError
from .bridge import BridgeConnector
from .signing import create_wallet_signer, is_rejection
from .wallets import (
    WalletId,
    WalletImplementation,
    BridgeWallet,
    PeraWallet,
    DeflyWallet,
    create_wallet,
    get_supported_wallets,
    is_wallet_supported,
)
from .provider import WalletProviderImpl

__all__ = [
    "ALGORAND_CHAIN_IDS",
    "CHAIN_ID_TO_NETWORK",
    "SIGN_TXN_METHOD",
    "PairingOptions",
    "PairingRequest",
    "PairingResult",
    "SessionStatus",
    "StoredSession",
    "SessionStore",
    "PairingConnector",
    "Connected",
    "Rejected",
    "RequestError",
    "BridgeConnector",
    "create_wallet_signer",
    "is_rejection",
    "WalletId",
    "WalletImplementation",
    "BridgeWallet",
    "PeraWallet",
    "DeflyWallet",
    "create_wallet",
    "get_supported_wallets",
    "is_wallet_supported",
    "WalletProviderImpl",
]
