"""
Vault account provider.

Implements the account provider contract on the Vault Transit engine. An
account is a Transit key plus a KV metadata record; the address is always
derived from the key's latest public key. Private keys never leave Vault.
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import List, Optional
import logging

from ..providers.base import (
    AccountInfo,
    AccountProvider,
    AccountWithSigner,
    ProviderStatus,
    ProviderType,
    RemoveAccountResult,
)
from ..runtime.address import public_key_b64_to_address
from ..runtime.config import VaultConfig
from ..runtime.errors import AccountError, NotFoundError
from ..signers.signer import Signer, remote_signer
from .client import VaultClient

logger = logging.getLogger(__name__)


class VaultProvider(AccountProvider):
    """
    Vault-based account provider.

    The client is injected so one instance can be shared per process and
    replaced with a fake in tests.
    """

    type = ProviderType.VAULT

    def __init__(self, client: VaultClient):
        self._client = client

    @classmethod
    def from_config(cls, config: VaultConfig) -> VaultProvider:
        return cls(VaultClient(config))

    @property
    def client(self) -> VaultClient:
        """The underlying Vault client, for administrative operations."""
        return self._client

    def can_create_accounts(self) -> bool:
        return True

    async def is_available(self) -> bool:
        return await self._client.is_available()

    async def get_status(self) -> ProviderStatus:
        seal = await self._client.get_seal_status()
        if not seal["initialized"]:
            return ProviderStatus(ready=False, message="Vault is not initialized")
        if seal["sealed"]:
            return ProviderStatus(ready=False, message="Vault is sealed")
        if not await self._client.is_available():
            return ProviderStatus(ready=False, message="Vault is not available")
        return ProviderStatus(ready=True, message=f"Vault ready at {self._client.url}")

    async def _address_for(self, name: str) -> str:
        return public_key_b64_to_address(await self._client.get_public_key(name))

    async def list_accounts(self) -> List[AccountInfo]:
        """
        List accounts from the metadata store.

        Each name is resolved to an address through its key; accounts whose
        key cannot be read are skipped.
        """
        accounts = []
        for name in await self._client.list_account_names():
            try:
                accounts.append(AccountInfo(name=name, address=await self._address_for(name)))
            except AccountError as e:
                logger.warning(f"Skipping account {name}: {e.message}")
        return accounts

    async def create_account(self, name: str) -> AccountInfo:
        """
        Create an account, reusing whatever already exists.

        The key and the metadata record are checked independently since
        either may survive a partial earlier failure. Metadata is written
        only when missing.
        """
        existing_metadata = await self._client.get_account_metadata(name)
        try:
            public_key = await self._client.get_public_key(name)
            key_exists = True
        except NotFoundError:
            public_key = await self._client.create_key(name)
            key_exists = False

        address = public_key_b64_to_address(public_key)

        if existing_metadata is None:
            await self._client.put_account_metadata(name, {
                "name": name,
                "address": address,
                "createdAt": datetime.now(timezone.utc).isoformat(),
            })

        if key_exists:
            logger.debug(f"Reused existing Vault key for {name}")
        else:
            logger.info(f"Created Vault account {name} ({address})")
        return AccountInfo(name=name, address=address, is_new=not key_exists)

    async def get_account(self, name: str) -> Optional[AccountInfo]:
        metadata = await self._client.get_account_metadata(name)
        if metadata is None:
            return None
        try:
            address = await self._address_for(name)
        except NotFoundError:
            return None
        return AccountInfo(name=name, address=address)

    async def get_account_with_signer(self, name: str) -> AccountWithSigner:
        address = await self._address_for(name)
        return AccountWithSigner(address=address, signer=self._create_signer(name, address))

    def _create_signer(self, name: str, address: str) -> Signer:
        client = self._client

        async def sign_bytes(data: bytes) -> bytes:
            return await client.sign(name, data)

        return remote_signer(address, sign_bytes)

    async def remove_account(self, name: str) -> RemoveAccountResult:
        """
        Delete an account's key and metadata.

        Both parts are attempted. Already-absent parts count as deleted; a
        half-completed removal is reported through warnings, never raised.
        """
        result = RemoveAccountResult(name=name)

        try:
            await self._client.delete_key(name)
            result.key_deleted = True
        except NotFoundError:
            result.key_deleted = True
        except AccountError as e:
            result.warnings.append(f"Failed to delete key: {e.message}")

        try:
            await self._client.delete_account_metadata(name)
            result.metadata_deleted = True
        except NotFoundError:
            result.metadata_deleted = True
        except AccountError as e:
            result.warnings.append(f"Failed to delete metadata: {e.message}")

        for warning in result.warnings:
            logger.warning(f"Partial removal of {name}: {warning}")
        return result


__all__ = ["VaultProvider"]
