"""
Wallet pairing and session types.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional
import asyncio
import time

from pydantic import BaseModel, Field

from ..providers.base import AccountInfo
from ..runtime.config import AppMetadata
from .constants import SESSION_SCHEMA_VERSION


@dataclass
class PairingOptions:
    """Options for a pairing request."""
    # Serve the QR code from a local page instead of the terminal only
    use_browser: bool = False
    # Only used in browser mode
    open_browser: bool = True
    # Seconds; defaults to the wallet config's pairing timeout
    timeout: Optional[float] = None


@dataclass
class PairingResult:
    """Result of an approved pairing."""
    wallet_id: str
    wallet_name: str
    accounts: List[AccountInfo]
    network: str


@dataclass
class PairingRequest:
    """
    A pending pairing.

    ``approval`` resolves once, with a ``PairingResult`` or one of
    ``PairingRejectedError``/``PairingTimeoutError``.
    """
    uri: str
    qr_ascii: str
    qr_data_url: str
    instructions: str
    approval: "asyncio.Future[PairingResult]"
    browser_url: Optional[str] = None


@dataclass
class SessionStatus:
    """Current wallet connection state."""
    connected: bool
    wallet_name: Optional[str] = None
    accounts: List[AccountInfo] = field(default_factory=list)
    network: Optional[str] = None
    # Epoch milliseconds
    expires_at: Optional[int] = None


def now_ms() -> int:
    return int(time.time() * 1000)


class StoredSession(BaseModel):
    """
    Versioned snapshot of a bridge session.

    Holds only what is needed to resume: bridge and topics, the session key,
    the approved accounts and chain. Timestamps are epoch milliseconds.
    """
    version: int = SESSION_SCHEMA_VERSION
    wallet_id: str = Field(alias="walletId")
    bridge: str
    # Hex-encoded 32-byte symmetric key
    key: str
    client_id: str = Field(alias="clientId")
    peer_id: str = Field(alias="peerId")
    peer_meta: Optional[AppMetadata] = Field(default=None, alias="peerMeta")
    accounts: List[str]
    chain_id: int = Field(alias="chainId")
    handshake_topic: str = Field(alias="handshakeTopic")
    handshake_id: int = Field(alias="handshakeId")
    stored_at: int = Field(default_factory=now_ms, alias="storedAt")
    expiry: int

    model_config = {"populate_by_name": True}

    def is_expired(self, at: Optional[int] = None) -> bool:
        return self.expiry <= (at if at is not None else now_ms())


__all__ = [
    "PairingOptions",
    "PairingResult",
    "PairingRequest",
    "SessionStatus",
    "StoredSession",
    "now_ms",
]
