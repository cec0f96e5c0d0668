"""
Account provider interface.

Shared contract for every key-custody backend. Providers are pure key
managers: they store or reach keys and sign transactions. They never query
network state such as balances.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..signers.signer import Signer


class ProviderType(str, Enum):
    """Supported account provider backends."""
    VAULT = "vault"
    KEYRING = "keyring"
    WALLET = "wallet"


@dataclass
class AccountInfo:
    """A named account and its address."""
    name: str
    address: str
    # Set by create operations only
    is_new: Optional[bool] = None


@dataclass
class AccountWithSigner:
    """An account address with a signer bound to it."""
    address: str
    signer: Signer


@dataclass
class ProviderStatus:
    """Readiness report for a provider."""
    ready: bool
    message: str


@dataclass
class RemoveAccountResult:
    """
    Outcome of removing an account.

    Parts that were already absent count as deleted. A half-completed
    removal is reported through ``warnings`` rather than raised.
    """
    name: str
    key_deleted: bool = False
    metadata_deleted: bool = False
    warnings: List[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return self.key_deleted and self.metadata_deleted


class AccountProvider(ABC):
    """
    Abstract account provider.

    All account providers must implement this interface to be usable by the
    transaction layer.
    """

    type: ProviderType

    @abstractmethod
    async def list_accounts(self) -> List[AccountInfo]:
        """
        List all accounts managed by this provider.

        Listing is best-effort: accounts that cannot be resolved are omitted.
        """
        pass

    @abstractmethod
    async def create_account(self, name: str) -> AccountInfo:
        """
        Create a new account.

        Args:
            name: Account name

        Returns:
            Account info with ``is_new`` set

        Raises:
            UnsupportedError: If this backend cannot mint keys
        """
        pass

    @abstractmethod
    async def get_account(self, name: str) -> Optional[AccountInfo]:
        """
        Get an account by name.

        Returns:
            Account info, or None if the account does not exist
        """
        pass

    @abstractmethod
    async def get_account_with_signer(self, name: str) -> AccountWithSigner:
        """
        Get an account together with a signer bound to it.

        Raises:
            NotFoundError: If the account does not exist
        """
        pass

    @abstractmethod
    async def is_available(self) -> bool:
        """Check if the backend is reachable and ready."""
        pass

    @abstractmethod
    def can_create_accounts(self) -> bool:
        """Check if this provider can mint new accounts."""
        pass

    async def get_status(self) -> ProviderStatus:
        """Get detailed readiness information."""
        ready = await self.is_available()
        return ProviderStatus(ready=ready, message="Ready" if ready else "Not available")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(type='{self.type.value}')"


__all__ = [
    "ProviderType",
    "AccountInfo",
    "AccountWithSigner",
    "ProviderStatus",
    "RemoveAccountResult",
    "AccountProvider",
    "Signer",
]
