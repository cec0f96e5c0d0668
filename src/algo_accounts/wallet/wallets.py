"""
Mobile wallet implementations.

Each supported wallet brand is one ``WalletImplementation``. Brands that
pair over the WalletConnect bridge share ``BridgeWallet`` and differ only in
identity and where they look up their bridge server. ``create_wallet``
selects the implementation from the closed ``WalletId`` set.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, List, Optional
import asyncio
import logging

from websockets.exceptions import WebSocketException

from ..providers.base import AccountInfo
from ..runtime.config import AppMetadata, WalletConfig
from ..runtime.errors import (
    InitializationError,
    InvalidInputError,
    NoSessionError,
    SessionExpiredError,
    WalletNotSupportedError,
)
from ..signers.signer import Signer
from .bridge import BridgeConnector
from .connector import PairingConnector
from .constants import ALGORAND_CHAIN_IDS, PERA_CONFIG_URL
from .pairing.bridge_config import fetch_bridge_url
from .pairing.flow import create_pairing_request
from .session_store import SessionStore
from .signing import create_wallet_signer
from .types import PairingOptions, PairingRequest, StoredSession, now_ms

logger = logging.getLogger(__name__)


class WalletId(str, Enum):
    """Supported wallet brands."""
    PERA = "pera"
    DEFLY = "defly"


ConnectorFactory = Callable[[str, AppMetadata, Optional[StoredSession]], PairingConnector]


def bridge_connector(bridge: str, metadata: AppMetadata,
                     session: Optional[StoredSession]) -> PairingConnector:
    return BridgeConnector(bridge, metadata, session)


class WalletImplementation(ABC):
    """Interface every wallet brand implements."""

    id: WalletId
    name: str

    @abstractmethod
    async def initialize(self, config: WalletConfig) -> None:
        """Prepare the wallet and resume a stored session if one is valid."""
        pass

    @abstractmethod
    def has_session(self) -> bool:
        pass

    @abstractmethod
    async def resume_session(self) -> List[AccountInfo]:
        """
        Resume the stored session.

        Returns:
            Accounts of the resumed session, empty if there is none
        """
        pass

    @abstractmethod
    async def request_pairing(self, options: Optional[PairingOptions] = None) -> PairingRequest:
        pass

    @abstractmethod
    def get_accounts(self) -> List[AccountInfo]:
        pass

    @abstractmethod
    def create_signer(self, address: str) -> Signer:
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """End the session and forget it locally."""
        pass

    @property
    @abstractmethod
    def config(self) -> Optional[WalletConfig]:
        pass

    @property
    @abstractmethod
    def chain_id(self) -> Optional[int]:
        pass

    @property
    @abstractmethod
    def session_expiry(self) -> Optional[int]:
        """Expiry of the current session in epoch milliseconds."""
        pass

    @property
    @abstractmethod
    def session_expired(self) -> bool:
        """True when a connected session has outlived its expiry."""
        pass


class BridgeWallet(WalletImplementation):
    """
    Wallet reached over the WalletConnect v1 bridge.

    Holds at most one connector. A new pairing request replaces the
    previous connector.

    Args:
        connector_factory: Builds connectors; replaceable for tests
    """

    config_url: str = PERA_CONFIG_URL

    def __init__(self, connector_factory: ConnectorFactory = bridge_connector):
        self._connector_factory = connector_factory
        self._connector: Optional[PairingConnector] = None
        self._config: Optional[WalletConfig] = None
        self._store: Optional[SessionStore] = None
        self._bridge: Optional[str] = None
        self._expiry: Optional[int] = None

    @property
    def config(self) -> Optional[WalletConfig]:
        return self._config

    @property
    def session_expiry(self) -> Optional[int]:
        return self._expiry if self.has_session() else None

    @property
    def chain_id(self) -> Optional[int]:
        return self._connector.chain_id if self.has_session() else None

    @property
    def session_expired(self) -> bool:
        connected = self._connector is not None and self._connector.connected
        return connected and self._expiry is not None and now_ms() >= self._expiry

    def _require_config(self) -> WalletConfig:
        if self._config is None or self._store is None:
            raise InitializationError(f"{self.name} wallet is not initialized",
                                      hint="Call initialize() first")
        return self._config

    async def initialize(self, config: WalletConfig) -> None:
        self._config = config
        self._store = SessionStore(config.session_dir, self.id.value)
        await self.resume_session()

    async def _resolve_bridge(self) -> str:
        if self._bridge is None:
            config = self._require_config()
            self._bridge = config.bridge_url or await fetch_bridge_url(self.config_url)
        return self._bridge

    def _attach(self, connector: PairingConnector) -> None:
        connector.on_session_update = self._on_session_update
        connector.on_disconnect = self._on_disconnect
        self._connector = connector

    async def _discard_connector(self) -> None:
        connector, self._connector = self._connector, None
        if connector is not None:
            connector.on_session_update = None
            connector.on_disconnect = None
            await connector.close()

    async def resume_session(self) -> List[AccountInfo]:
        config = self._require_config()
        if self.has_session():
            return self.get_accounts()

        stored = self._store.load()
        if stored is None:
            return []

        connector = self._connector_factory(stored.bridge, config.metadata, stored)
        connector.on_session_update = self._on_session_update
        connector.on_disconnect = self._on_disconnect
        try:
            await connector.open()
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            # Unconfirmed: not trusted now, the file stays for the next start
            logger.warning(f"Could not reach bridge while resuming {self.name} session: {e}")
            await connector.close()
            return []

        if not connector.connected:
            logger.info(f"Stored {self.name} session is no longer valid, clearing it")
            await connector.close()
            self._store.clear()
            return []

        self._attach(connector)
        self._expiry = stored.expiry
        logger.info(f"Resumed {self.name} session with {len(connector.accounts)} account(s)")
        return self.get_accounts()

    def has_session(self) -> bool:
        if self._connector is None or not self._connector.connected:
            return False
        return not self.session_expired

    async def request_pairing(self, options: Optional[PairingOptions] = None) -> PairingRequest:
        config = self._require_config()
        bridge = await self._resolve_bridge()

        await self._discard_connector()
        connector = self._connector_factory(bridge, config.metadata, None)
        self._attach(connector)
        await connector.create_session(ALGORAND_CHAIN_IDS[config.network])

        request = await create_pairing_request(
            connector, config, self.id.value, self.name, self._store,
            self._map_addresses, options,
        )
        request.approval.add_done_callback(self._on_paired)
        return request

    def _on_paired(self, approval) -> None:
        if not approval.cancelled() and approval.exception() is None:
            stored = self._store.load()
            self._expiry = stored.expiry if stored else None

    def _map_addresses(self, addresses: List[str]) -> List[AccountInfo]:
        return [AccountInfo(name=f"{self.id.value}-{i + 1}", address=address)
                for i, address in enumerate(addresses)]

    def get_accounts(self) -> List[AccountInfo]:
        if not self.has_session():
            return []
        return self._map_addresses(self._connector.accounts)

    def create_signer(self, address: str) -> Signer:
        if self.session_expired:
            logger.info(f"{self.name} session expired, clearing it")
            self._store.clear()
            raise SessionExpiredError()
        if not self.has_session():
            raise NoSessionError()
        if address not in self._connector.accounts:
            raise InvalidInputError(f"Address {address} is not connected to {self.name}",
                                    details={"address": address})
        return create_wallet_signer(self._connector, self._config.signing_timeout)

    async def _on_session_update(self, accounts: List[str], chain_id: int) -> None:
        if self._store is None or self._connector is None:
            return
        snapshot = self._connector.snapshot(self.id.value, self._config.session_ttl)
        self._store.save(snapshot)
        self._expiry = snapshot.expiry

    async def _on_disconnect(self) -> None:
        logger.info(f"{self.name} ended the session")
        self._expiry = None
        if self._store is not None:
            self._store.clear()

    async def disconnect(self) -> None:
        connector = self._connector
        try:
            if connector is not None and connector.connected:
                await connector.kill_session()
        except (OSError, WebSocketException) as e:
            logger.warning(f"Could not notify {self.name} of the disconnect: {e}")
        finally:
            self._expiry = None
            await self._discard_connector()
            if self._store is not None:
                self._store.clear()
        logger.info(f"Disconnected from {self.name}")


class PeraWallet(BridgeWallet):
    id = WalletId.PERA
    name = "Pera Wallet"


class DeflyWallet(BridgeWallet):
    # Defly publishes no bridge config of its own and uses Pera's servers
    id = WalletId.DEFLY
    name = "Defly Wallet"


def get_supported_wallets() -> List[str]:
    return [w.value for w in WalletId]


def is_wallet_supported(wallet_id: str) -> bool:
    return wallet_id in get_supported_wallets()


def create_wallet(wallet_id, connector_factory: ConnectorFactory = bridge_connector) -> WalletImplementation:
    """
    Create the implementation for a wallet brand.

    Args:
        wallet_id: ``WalletId`` or its string value

    Raises:
        WalletNotSupportedError: For an unknown brand
    """
    try:
        wallet_id = WalletId(wallet_id)
    except ValueError:
        raise WalletNotSupportedError(str(wallet_id), get_supported_wallets())

    if wallet_id is WalletId.PERA:
        return PeraWallet(connector_factory)
    if wallet_id is WalletId.DEFLY:
        return DeflyWallet(connector_factory)
    raise WalletNotSupportedError(wallet_id.value, get_supported_wallets())


__all__ = [
    "WalletId",
    "WalletImplementation",
    "BridgeWallet",
    "PeraWallet",
    "DeflyWallet",
    "ConnectorFactory",
    "create_wallet",
    "get_supported_wallets",
    "is_wallet_supported",
]
