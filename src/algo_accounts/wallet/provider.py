"""
Mobile wallet account provider.

Wraps a ``WalletImplementation`` in the account provider contract. Keys
stay on the phone, so accounts cannot be created here; they appear when
the user pairs and approves them in the wallet app.
"""

from __future__ import annotations
from typing import List, Optional
import logging

from ..providers.base import (
    AccountInfo,
    AccountProvider,
    AccountWithSigner,
    ProviderStatus,
    ProviderType,
)
from ..runtime.config import WalletConfig
from ..runtime.errors import (
    CannotCreateAccountError,
    NoSessionError,
    NotFoundError,
    SessionExpiredError,
)
from .constants import CHAIN_ID_TO_NETWORK
from .types import PairingOptions, PairingRequest, SessionStatus
from .wallets import WalletImplementation

logger = logging.getLogger(__name__)


class WalletProviderImpl(AccountProvider):
    """
    Account provider backed by a paired mobile wallet.

    Args:
        wallet: Wallet brand implementation
        config: Wallet configuration
    """

    type = ProviderType.WALLET

    def __init__(self, wallet: WalletImplementation, config: Optional[WalletConfig] = None):
        self.wallet = wallet
        self.config = config or WalletConfig()
        self._initialized = False

    async def initialize(self) -> None:
        """Initialize the wallet, resuming a stored session when one is valid."""
        if self._initialized:
            return
        await self.wallet.initialize(self.config)
        self._initialized = True

    async def pair(self, options: Optional[PairingOptions] = None) -> PairingRequest:
        """
        Start pairing with the wallet.

        Returns:
            Pairing request; await ``approval`` for the result
        """
        await self.initialize()
        return await self.wallet.request_pairing(options)

    async def disconnect(self) -> None:
        await self.initialize()
        await self.wallet.disconnect()

    async def get_session_status(self) -> SessionStatus:
        await self.initialize()
        if not self.wallet.has_session():
            return SessionStatus(connected=False)

        chain_id = self.wallet.chain_id
        return SessionStatus(
            connected=True,
            wallet_name=self.wallet.name,
            accounts=self.wallet.get_accounts(),
            network=CHAIN_ID_TO_NETWORK.get(chain_id, self.config.network),
            expires_at=self.wallet.session_expiry,
        )

    async def get_status(self) -> ProviderStatus:
        status = await self.get_session_status()
        if status.connected:
            return ProviderStatus(
                ready=True,
                message=f"Connected to {status.wallet_name} with {len(status.accounts)} account(s)",
            )
        return ProviderStatus(ready=False, message=f"Not connected to {self.wallet.name}")

    async def list_accounts(self) -> List[AccountInfo]:
        await self.initialize()
        return self.wallet.get_accounts()

    async def create_account(self, name: str) -> AccountInfo:
        raise CannotCreateAccountError()

    async def get_account(self, name: str) -> Optional[AccountInfo]:
        for account in await self.list_accounts():
            if account.name == name:
                return account
        return None

    async def get_account_with_signer(self, name: str) -> AccountWithSigner:
        await self.initialize()
        if self.wallet.session_expired:
            await self.wallet.disconnect()
            raise SessionExpiredError()
        if not self.wallet.has_session():
            raise NoSessionError()

        account = await self.get_account(name)
        if account is None:
            raise NotFoundError(f"Account '{name}' not found in {self.wallet.name}",
                                hint="Run pairing again to refresh connected accounts")
        return AccountWithSigner(address=account.address,
                                 signer=self.wallet.create_signer(account.address))

    async def is_available(self) -> bool:
        await self.initialize()
        return self.wallet.has_session()

    def can_create_accounts(self) -> bool:
        return False


__all__ = ["WalletProviderImpl"]
