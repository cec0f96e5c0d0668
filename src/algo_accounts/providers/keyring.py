"""
Keyring account provider.

Keys are stored encrypted by the OS keyring and loaded into memory for
signing. Storage is hybrid:

- Secrets in the keyring: ``account:{name}:mnemonic`` and
  ``account:{name}:privateKey``
- Metadata in a JSON index (``accounts.json``): name, address, createdAt

Listing and reading metadata never touches the keyring.
"""

from __future__ import annotations
from pathlib import Path
from typing import List, Optional, Union
import logging

from algosdk import account, error as algo_error, mnemonic as algo_mnemonic

from ..keys.account_index import AccountIndex, IndexedAccount
from ..keys.secret_store import (
    KeyringSecretStore,
    SecretStore,
    account_mnemonic_key,
    account_private_key_key,
    is_keyring_available,
)
from ..runtime.config import DEFAULT_CONFIG_DIR
from ..runtime.errors import AccountExistsError, InvalidInputError, NotFoundError
from ..signers.signer import local_signer
from .base import (
    AccountInfo,
    AccountProvider,
    AccountWithSigner,
    ProviderStatus,
    ProviderType,
    RemoveAccountResult,
)

logger = logging.getLogger(__name__)


class KeyringProvider(AccountProvider):
    """
    Account provider over the OS keyring.

    Accounts are generated locally; the signing key lives in process memory
    only for the duration of a signing call.
    """

    type = ProviderType.KEYRING

    def __init__(self, store: Optional[SecretStore] = None,
                 index_dir: Union[str, Path] = DEFAULT_CONFIG_DIR):
        """
        Initialize keyring provider.

        Args:
            store: Secret store holding key material
            index_dir: Directory holding the account index file
        """
        self.store = store or KeyringSecretStore()
        self.index = AccountIndex(index_dir)

    def can_create_accounts(self) -> bool:
        return True

    async def is_available(self) -> bool:
        return await is_keyring_available(self.store)

    async def get_status(self) -> ProviderStatus:
        ready = await self.is_available()
        if not ready:
            return ProviderStatus(ready=False, message="Keyring is not available")
        accounts = await self.list_accounts()
        return ProviderStatus(ready=True, message=f"Keyring connected with {len(accounts)} account(s)")

    async def list_accounts(self) -> List[AccountInfo]:
        return [AccountInfo(name=a.name, address=a.address) for a in self.index.list()]

    async def create_account(self, name: str) -> AccountInfo:
        existing = self.index.get(name)
        if existing:
            return AccountInfo(name=existing.name, address=existing.address, is_new=False)

        private_key, address = account.generate_account()
        await self._store_key(name, private_key, address)
        logger.info(f"Created keyring account {name} ({address})")
        return AccountInfo(name=name, address=address, is_new=True)

    async def import_account(self, name: str, phrase: str) -> AccountInfo:
        """
        Import an account from a 25-word mnemonic.

        Raises:
            AccountExistsError: If the name is already taken
            InvalidInputError: If the mnemonic is malformed
        """
        if self.index.has(name):
            raise AccountExistsError(name)

        try:
            private_key = algo_mnemonic.to_private_key(phrase)
        except (ValueError, KeyError, algo_error.WrongMnemonicLengthError,
                algo_error.WrongChecksumError) as e:
            raise InvalidInputError("Invalid mnemonic", hint="Expected a 25-word Algorand mnemonic.",
                                    cause=e)

        address = account.address_from_private_key(private_key)
        await self._store_key(name, private_key, address)
        logger.info(f"Imported keyring account {name} ({address})")
        return AccountInfo(name=name, address=address, is_new=True)

    async def _store_key(self, name: str, private_key: str, address: str) -> None:
        self.index.insert(name, address)
        try:
            await self.store.set(account_mnemonic_key(name), algo_mnemonic.from_private_key(private_key))
            await self.store.set(account_private_key_key(name), private_key)
        except Exception:
            # Roll back the index entry so the name is not left without a key
            self.index.delete(name)
            raise

    async def get_account(self, name: str) -> Optional[AccountInfo]:
        entry = self.index.get(name)
        if not entry:
            return None
        return AccountInfo(name=entry.name, address=entry.address)

    def get_account_metadata(self, name: str) -> Optional[IndexedAccount]:
        return self.index.get(name)

    async def get_account_with_signer(self, name: str) -> AccountWithSigner:
        private_key = await self.store.get(account_private_key_key(name))
        if not private_key:
            raise NotFoundError(f"Account not found in keyring: {name}",
                                hint="Create it first: vibekit account create")

        address = account.address_from_private_key(private_key)
        return AccountWithSigner(address=address, signer=local_signer(private_key))

    async def get_mnemonic(self, name: str) -> Optional[str]:
        """Get the backup mnemonic for an account."""
        return await self.store.get(account_mnemonic_key(name))

    async def remove_account(self, name: str) -> RemoveAccountResult:
        """
        Remove an account.

        Keyring secrets are deleted first; the index entry is removed only
        once the secrets are gone.
        """
        await self.store.delete(account_mnemonic_key(name))
        await self.store.delete(account_private_key_key(name))
        self.index.delete(name)
        logger.info(f"Removed keyring account {name}")
        return RemoveAccountResult(name=name, key_deleted=True, metadata_deleted=True)


__all__ = ["KeyringProvider"]
