"""
Local secret storage: the OS keyring store and the account index.
"""

from .secret_store import (
    SecretStore,
    KeyringSecretStore,
    MemorySecretStore,
    is_keyring_available,
    account_mnemonic_key,
    account_private_key_key,
    save_mcp_token,
    load_mcp_token,
    delete_mcp_token,
    SERVICE,
    VAULT_MCP_TOKEN,
)
from .account_index import AccountIndex, IndexedAccount

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
    "AccountIndex",
    "IndexedAccount",
]
