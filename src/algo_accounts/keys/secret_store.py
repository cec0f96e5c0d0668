"""
Secret storage over the OS credential manager.

Only high-grade secrets (signing keys, the Vault signer token) are kept here.
All entries live under one fixed service namespace. "Value not found" is
reported as ``None``/``False``; a missing credential service raises
``KeyringUnavailableError`` so callers never conflate the two.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional
import asyncio
import logging

import keyring
from keyring.backend import KeyringBackend
from keyring.errors import KeyringError, NoKeyringError, PasswordDeleteError

from ..runtime.errors import KeyringUnavailableError

logger = logging.getLogger(__name__)

SERVICE = "vibekit"

# Vault signer token used by the MCP server
VAULT_MCP_TOKEN = "config:vault-mcp-token"

ACCOUNT_KEY_PREFIX = "account:"

# Newline-separated list of every key this store has written
_INDEX_KEY = "__vibekit_index__"
_PROBE_KEY = "__vibekit_keyring_check__"


def account_mnemonic_key(name: str) -> str:
    """Build the keyring key for an account's mnemonic."""
    return f"{ACCOUNT_KEY_PREFIX}{name}:mnemonic"


def account_private_key_key(name: str) -> str:
    """Build the keyring key for an account's private key."""
    return f"{ACCOUNT_KEY_PREFIX}{name}:privateKey"


class SecretStore(ABC):
    """
    Abstract secret store interface.

    Defines get/set/delete/has/find_keys over string secrets.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Get a secret by key.

        Args:
            key: The key to retrieve

        Returns:
            The secret value, or None if not found
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """
        Store a secret.

        Args:
            key: The key to store
            value: The secret value
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """
        Delete a secret. Deleting a missing key is a no-op.

        Args:
            key: The key to delete
        """
        pass

    @abstractmethod
    async def find_keys(self, prefix: str) -> List[str]:
        """
        Find all stored keys starting with a prefix.

        Args:
            prefix: The prefix to search for

        Returns:
            Matching keys
        """
        pass

    async def has(self, key: str) -> bool:
        """Check if a secret exists."""
        return await self.get(key) is not None


class KeyringSecretStore(SecretStore):
    """
    Secret store backed by the OS keyring.

    Uses macOS Keychain, the Linux Secret Service (GNOME Keyring, KWallet)
    or the Windows Credential Manager through the ``keyring`` package.
    Blocking backend calls run in a worker thread.

    ``keyring`` cannot enumerate credentials, so the store keeps its own
    index entry listing every key it has written.
    """

    def __init__(self, service: str = SERVICE, backend: Optional[KeyringBackend] = None):
        """
        Initialize keyring store.

        Args:
            service: Service namespace all entries are stored under
            backend: Explicit keyring backend (defaults to the platform backend)
        """
        self.service = service
        self._backend = backend

    def _keyring(self) -> KeyringBackend:
        backend = self._backend or keyring.get_keyring()
        if getattr(backend, "priority", 1) <= 0:
            raise KeyringUnavailableError(
                f"Keyring not available ({backend.__class__.__name__})"
            )
        return backend

    async def _call(self, method: str, *args: Any) -> Any:
        func: Callable[..., Any] = getattr(self._keyring(), method)
        try:
            return await asyncio.to_thread(func, self.service, *args)
        except PasswordDeleteError:
            raise
        except (NoKeyringError, KeyringError, RuntimeError) as e:
            # Secret Service raises RuntimeError when no session bus exists
            raise KeyringUnavailableError(cause=e)

    async def get(self, key: str) -> Optional[str]:
        return await self._call("get_password", key)

    async def set(self, key: str, value: str) -> None:
        await self._call("set_password", key, value)
        index = await self._load_index()
        if key not in index:
            index.append(key)
            await self._save_index(index)
        logger.debug(f"Stored secret {key} in keyring")

    async def delete(self, key: str) -> None:
        try:
            await self._call("delete_password", key)
            logger.debug(f"Deleted secret {key} from keyring")
        except PasswordDeleteError:
            pass

        index = await self._load_index()
        if key in index:
            index.remove(key)
            await self._save_index(index)

    async def find_keys(self, prefix: str) -> List[str]:
        return [k for k in await self._load_index() if k.startswith(prefix)]

    async def _load_index(self) -> List[str]:
        raw = await self._call("get_password", _INDEX_KEY)
        if not raw:
            return []
        return [k for k in raw.split("\n") if k]

    async def _save_index(self, keys: List[str]) -> None:
        await self._call("set_password", _INDEX_KEY, "\n".join(sorted(set(keys))))

    def __repr__(self) -> str:
        return f"KeyringSecretStore(service='{self.service}')"


class MemorySecretStore(SecretStore):
    """
    In-memory secret store.

    Stores secrets in memory with no persistence.
    """

    def __init__(self):
        self._secrets: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._secrets.get(key)

    async def set(self, key: str, value: str) -> None:
        self._secrets[key] = value

    async def delete(self, key: str) -> None:
        self._secrets.pop(key, None)

    async def find_keys(self, prefix: str) -> List[str]:
        return [k for k in self._secrets if k.startswith(prefix)]

    def __repr__(self) -> str:
        return f"MemorySecretStore(count={len(self._secrets)})"


async def is_keyring_available(store: Optional[SecretStore] = None) -> bool:
    """
    Check if the OS keyring is usable.

    Returns False on headless Linux without a keyring service.
    """
    store = store or KeyringSecretStore()
    try:
        await store.get(_PROBE_KEY)
        return True
    except KeyringUnavailableError:
        return False


# Vault signer token helpers

async def save_mcp_token(store: SecretStore, token: str) -> None:
    await store.set(VAULT_MCP_TOKEN, token)


async def load_mcp_token(store: SecretStore) -> Optional[str]:
    return await store.get(VAULT_MCP_TOKEN)


async def delete_mcp_token(store: SecretStore) -> None:
    await store.delete(VAULT_MCP_TOKEN)


__all__ = [
    "SecretStore",
    "KeyringSecretStore",
    "MemorySecretStore",
    "is_keyring_available",
    "account_mnemonic_key",
    "account_private_key_key",
    "save_mcp_token",
    "load_mcp_token",
    "delete_mcp_token",
    "SERVICE",
    "VAULT_MCP_TOKEN",
    "ACCOUNT_KEY_PREFIX",
]
