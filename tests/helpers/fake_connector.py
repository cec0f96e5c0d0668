"""
Scriptable pairing connector for flow, signer and wallet tests.
"""

import asyncio
from typing import Any, List, Optional

from algo_accounts.runtime.config import AppMetadata
from algo_accounts.wallet.connector import Connected, PairingConnector, Rejected, RequestError
from algo_accounts.wallet.types import StoredSession, now_ms


class FakeConnector(PairingConnector):
    """
    Connector driven by the test.

    ``approve``/``reject`` play the wallet's pairing decision. Custom
    requests are answered with ``response``, raised as ``error``, or left
    hanging when both are None.
    """

    def __init__(self, bridge: str = "https://bridge.test", metadata: Optional[AppMetadata] = None,
                 session: Optional[StoredSession] = None):
        super().__init__()
        self.bridge = bridge
        self.metadata = metadata
        self._uri: Optional[str] = None
        self._connected = False
        self._accounts: List[str] = []
        self._chain_id: Optional[int] = None

        self.response: Any = None
        self.error: Optional[Exception] = None
        self.kill_error: Optional[Exception] = None
        self.requests = []
        self.open_error: Optional[Exception] = None
        self.opened = False
        self.closed = False
        self.killed = False

        # A restored session counts as connected once the transport opens
        self._restored = session is not None
        if session is not None:
            self._accounts = list(session.accounts)
            self._chain_id = session.chain_id

    @property
    def uri(self) -> Optional[str]:
        return self._uri

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def accounts(self) -> List[str]:
        return list(self._accounts)

    @property
    def chain_id(self) -> Optional[int]:
        return self._chain_id

    @property
    def peer_meta(self) -> Optional[AppMetadata]:
        return None

    async def create_session(self, chain_id: int) -> str:
        self._chain_id = chain_id
        self._uri = f"wc:handshake-topic@1?bridge={self.bridge}&key=00ff"
        return self._uri

    def approve(self, accounts: List[str], chain_id: Optional[int] = None) -> None:
        self._connected = True
        self._accounts = list(accounts)
        if chain_id is not None:
            self._chain_id = chain_id
        self._resolve(Connected(accounts=list(accounts), chain_id=self._chain_id))

    def reject(self, reason: str = "User rejected") -> None:
        self._resolve(Rejected(reason))

    async def update(self, accounts: List[str]) -> None:
        """Play a wallet-initiated account change."""
        self._accounts = list(accounts)
        if self.on_session_update:
            await self.on_session_update(self.accounts, self._chain_id)

    async def drop(self) -> None:
        """Play a wallet-initiated disconnect."""
        self._connected = False
        self._accounts = []
        if self.on_disconnect:
            await self.on_disconnect()

    async def send_custom_request(self, method: str, params: List[Any]) -> Any:
        self.requests.append((method, params))
        if self.error is not None:
            raise self.error
        if self.response is None:
            await asyncio.Event().wait()
        return self.response

    async def kill_session(self) -> None:
        self.killed = True
        self._connected = False
        self._accounts = []
        if self.kill_error is not None:
            raise self.kill_error

    def snapshot(self, wallet_id: str, ttl: float) -> StoredSession:
        return StoredSession(
            wallet_id=wallet_id,
            bridge=self.bridge,
            key="00" * 32,
            client_id="client-id",
            peer_id="peer-id",
            accounts=self.accounts,
            chain_id=self._chain_id or 0,
            handshake_topic="handshake-topic",
            handshake_id=1,
            expiry=now_ms() + int(ttl * 1000),
        )

    async def open(self) -> None:
        if self.open_error is not None:
            raise self.open_error
        self.opened = True
        if self._restored:
            self._restored = False
            self._connected = True

    async def close(self) -> None:
        self.closed = True


class ConnectorRecorder:
    """Connector factory that remembers every connector it built."""

    def __init__(self, valid_on_resume: bool = True, open_error: Optional[Exception] = None):
        self.valid_on_resume = valid_on_resume
        self.open_error = open_error
        self.built: List[FakeConnector] = []

    def __call__(self, bridge: str, metadata: AppMetadata,
                 session: Optional[StoredSession]) -> FakeConnector:
        connector = FakeConnector(bridge, metadata, session if self.valid_on_resume else None)
        if session is not None:
            connector.open_error = self.open_error
        self.built.append(connector)
        return connector

    @property
    def last(self) -> FakeConnector:
        return self.built[-1]


__all__ = ["FakeConnector", "ConnectorRecorder", "RequestError"]
