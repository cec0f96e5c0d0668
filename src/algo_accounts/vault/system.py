"""
Vault administration: init, unseal, engine setup and signer tokens.

These operations run with the root token during setup. The signer token
they mint carries the ``mcp-signer`` policy, which can create, read and
sign with keys but never delete them.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging
import os

from ..runtime.errors import AccountError, InvalidInputError
from .client import VaultClient

logger = logging.getLogger(__name__)

ENV_VAULT_UNSEAL_KEY = "VAULT_UNSEAL_KEY"
ENV_VAULT_ROOT_TOKEN = "VAULT_ROOT_TOKEN"

MCP_POLICY_NAME = "mcp-signer"
MCP_TOKEN_DISPLAY_NAME = "mcp-signer-token"
# 32 days, Vault's default max TTL
DEFAULT_MCP_TOKEN_TTL = "768h"

_SIGNER_POLICY_TEMPLATE = """
# Policy: mcp-signer
# Allows signing, creating, and reading transit keys
# Also allows managing wallet metadata in KV store

# Sign with any key
path "{transit}/sign/*" {
  capabilities = ["create", "update"]
}

# Create and read keys
# Note: Vault Transit requires both "create" and "update" to create keys
path "{transit}/keys/*" {
  capabilities = ["create", "update", "read"]
}

# List keys
path "{transit}/keys" {
  capabilities = ["list"]
}

# KV v2: Read and write wallet metadata
path "{kv}/data/wallets/*" {
  capabilities = ["create", "update", "read", "delete"]
}

# KV v2: List wallets directory (exact path)
path "{kv}/metadata/wallets" {
  capabilities = ["list"]
}

# KV v2: Read/delete individual wallet metadata (glob for children)
path "{kv}/metadata/wallets/*" {
  capabilities = ["list", "read", "delete"]
}
""".strip()


def signer_policy(transit_path: str = "transit", kv_path: str = "vibekit") -> str:
    """Signer policy HCL for the given Transit and KV mount paths."""
    return _SIGNER_POLICY_TEMPLATE.replace("{transit}", transit_path).replace("{kv}", kv_path)


MCP_SIGNER_POLICY = signer_policy()


@dataclass
class VaultInitResult:
    """Unseal keys and root token produced by initialization."""
    keys: List[str]
    keys_base64: List[str]
    root_token: str


@dataclass
class TokenInfo:
    """Introspection data for a token. Never includes the token itself."""
    accessor: str
    display_name: str
    policies: List[str]
    created_at: str
    # None means the token never expires
    expires_at: Optional[str]
    # 0 means infinite
    ttl_seconds: int


class VaultSystem:
    """
    Administrative operations over a Vault client.

    Args:
        client: Client for the target Vault server
        root_token: Token used for privileged calls (defaults to the
            client's configured token)
    """

    def __init__(self, client: VaultClient, root_token: Optional[str] = None):
        self.client = client
        self.root_token = root_token or client.config.token

    async def init(self, shares: int = 1, threshold: int = 1) -> VaultInitResult:
        data = await self.client.request("POST", "/v1/sys/init", {
            "secret_shares": shares,
            "secret_threshold": threshold,
        }, authenticated=False)
        logger.info("Vault initialized")
        return VaultInitResult(
            keys=data["keys"],
            keys_base64=data.get("keys_base64", []),
            root_token=data["root_token"],
        )

    async def unseal(self, key: str) -> None:
        """
        Submit an unseal key.

        Raises:
            InvalidInputError: If Vault is still sealed afterwards
        """
        data = await self.client.request("POST", "/v1/sys/unseal", {"key": key},
                                         authenticated=False)
        if data.get("sealed"):
            raise InvalidInputError("Invalid unseal key", hint="Use the unseal key printed by vibekit vault init.")
        logger.info("Vault unsealed")

    async def _mount(self, path: str, body: Dict[str, Any]) -> None:
        try:
            await self.client.request("POST", f"/v1/sys/mounts/{path}", body, token=self.root_token)
            logger.info(f"Mounted {body['type']} engine at {path}/")
        except InvalidInputError:
            # "path is already in use"
            logger.debug(f"Engine already mounted at {path}/")

    async def mount_transit(self) -> None:
        await self._mount(self.client.transit_path, {
            "type": "transit",
            "config": {"force_no_cache": True},
        })

    async def mount_kv(self) -> None:
        await self._mount(self.client.kv_path, {
            "type": "kv",
            "options": {"version": "2"},
        })

    async def write_policy(self) -> None:
        await self.client.request("PUT", f"/v1/sys/policies/acl/{MCP_POLICY_NAME}", {
            "policy": signer_policy(self.client.transit_path, self.client.kv_path),
        }, token=self.root_token)
        logger.info(f"Wrote policy {MCP_POLICY_NAME}")

    async def configure(self) -> None:
        """Mount the Transit and KV engines and write the signer policy."""
        await self.mount_transit()
        await self.mount_kv()
        await self.write_policy()

    async def create_token(self, ttl: str = DEFAULT_MCP_TOKEN_TTL) -> str:
        """Mint a renewable token carrying the signer policy."""
        data = await self.client.request("POST", "/v1/auth/token/create", {
            "policies": [MCP_POLICY_NAME],
            "renewable": True,
            "display_name": MCP_TOKEN_DISPLAY_NAME,
            "ttl": ttl,
        }, token=self.root_token)
        logger.info(f"Created signer token (ttl {ttl})")
        return data["auth"]["client_token"]

    async def revoke_token(self, token: str) -> None:
        await self.client.request("POST", "/v1/auth/token/revoke", {"token": token},
                                  token=self.root_token)
        logger.info("Revoked signer token")

    async def lookup_token(self, token: Optional[str] = None) -> Optional[TokenInfo]:
        """
        Introspect a token.

        Args:
            token: Token to look up (defaults to the client's token)

        Returns:
            Token info, or None if the token is invalid or Vault is unreachable
        """
        try:
            response = await self.client.request("GET", "/v1/auth/token/lookup-self",
                                                 token=token)
        except AccountError as e:
            logger.debug(f"Token lookup failed: {e.message}")
            return None

        data = response["data"]
        created = datetime.fromtimestamp(data["creation_time"], tz=timezone.utc)
        return TokenInfo(
            accessor=data["accessor"],
            display_name=data["display_name"],
            policies=list(data.get("policies") or []),
            created_at=created.isoformat(),
            expires_at=data.get("expire_time"),
            ttl_seconds=int(data.get("ttl") or 0),
        )


def get_unseal_key_from_env() -> Optional[str]:
    return os.environ.get(ENV_VAULT_UNSEAL_KEY) or None


def get_root_token_from_env() -> Optional[str]:
    return os.environ.get(ENV_VAULT_ROOT_TOKEN) or None


__all__ = [
    "VaultSystem",
    "VaultInitResult",
    "TokenInfo",
    "MCP_POLICY_NAME",
    "MCP_SIGNER_POLICY",
    "signer_policy",
    "DEFAULT_MCP_TOKEN_TTL",
    "get_unseal_key_from_env",
    "get_root_token_from_env",
]
