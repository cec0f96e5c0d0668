"""
HashiCorp Vault backend: Transit client, account provider and setup
operations.
"""

from .client import VaultClient
from .provider import VaultProvider
from .system import VaultSystem, VaultInitResult, TokenInfo, MCP_POLICY_NAME, DEFAULT_MCP_TOKEN_TTL

__all__ = [
    "VaultClient",
    "VaultProvider",
    "VaultSystem",
    "VaultInitResult",
    "TokenInfo",
    "MCP_POLICY_NAME",
    "DEFAULT_MCP_TOKEN_TTL",
]
