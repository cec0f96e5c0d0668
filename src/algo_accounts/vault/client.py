"""
Vault Transit client.

HTTP client for HashiCorp Vault's Transit secrets engine, used for Ed25519
key management and signing. Keys never leave Vault; every signing operation
happens server-side. Account metadata lives in a KV v2 engine next to the
keys.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple
import asyncio
import base64
import logging

import aiohttp

from ..runtime.config import VaultConfig
from ..runtime.errors import (
    AccountError,
    InvalidInputError,
    NotFoundError,
    UnavailableError,
    VaultSealedError,
    VaultTimeoutError,
)

logger = logging.getLogger(__name__)

# KV v2 paths keep the 'wallets/' segment for compatibility with existing data
METADATA_FOLDER = "wallets"

_STATUS_HINT = "Check that Vault is running: vibekit vault status"


class VaultClient:
    """
    Async client for the Transit and KV v2 engines.

    The client owns one ``aiohttp`` session, created on first use. Use it as
    an async context manager or call ``close()`` when done.
    """

    def __init__(self, config: VaultConfig, session: Optional[aiohttp.ClientSession] = None):
        """
        Initialize Vault client.

        Args:
            config: Vault connection settings
            session: Optional externally owned HTTP session
        """
        self.config = config
        self.url = config.url
        self.key_prefix = config.key_prefix
        self.transit_path = config.transit_path
        self.kv_path = config.kv_path
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> VaultClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None,
                      authenticated: bool = True, token: Optional[str] = None) -> Dict[str, Any]:
        """
        Make a request to the Vault HTTP API.

        Args:
            method: HTTP method, or ``LIST`` (sent as GET with ``list=true``)
            path: API path starting with ``/v1/``
            body: Optional JSON body
            authenticated: Whether to send a token
            token: Token to send instead of the configured one

        Returns:
            Decoded JSON response (empty dict for 204)

        Raises:
            VaultTimeoutError: If the request exceeds the configured timeout
            AccountError: Mapped from HTTP and connection failures
        """
        headers = {}
        if authenticated:
            headers["X-Vault-Token"] = token or self.config.token

        params = None
        if method == "LIST":
            method = "GET"
            params = {"list": "true"}

        timeout = aiohttp.ClientTimeout(total=self.config.request_timeout)
        session = self._get_session()

        try:
            async with session.request(method, f"{self.url}{path}", json=body, params=params,
                                       headers=headers, timeout=timeout) as response:
                if response.status == 204:
                    return {}
                if response.status >= 400:
                    text = await response.text()
                    raise _map_http_error(response.status, method, path, text)
                return await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise VaultTimeoutError(details={"method": method, "path": path}, cause=e)
        except aiohttp.ClientError as e:
            raise UnavailableError(f"Cannot reach Vault at {self.url}", hint=_STATUS_HINT, cause=e)

    async def _probe(self, path: str) -> Tuple[int, Optional[Dict[str, Any]]]:
        """Unauthenticated GET that returns the status and body of any response."""
        timeout = aiohttp.ClientTimeout(total=self.config.request_timeout)
        async with self._get_session().get(f"{self.url}{path}", timeout=timeout) as response:
            try:
                data = await response.json(content_type=None)
            except ValueError:
                data = None
            return response.status, data

    def get_key_name(self, account_name: str) -> str:
        """Get the full Transit key name for an account."""
        return f"{self.key_prefix}{account_name}"

    # =========================================================================
    # Transit keys
    # =========================================================================

    async def create_key(self, account_name: str) -> str:
        """
        Create a non-exportable Ed25519 key.

        Args:
            account_name: Account name (prefixed to form the key name)

        Returns:
            Base64 public key of the new key
        """
        key_name = self.get_key_name(account_name)
        await self.request("POST", f"/v1/{self.transit_path}/keys/{key_name}", {
            "type": "ed25519",
            "exportable": False,
        })
        logger.debug(f"Created transit key {key_name}")
        return await self.get_public_key(account_name)

    async def get_public_key(self, account_name: str) -> str:
        """
        Get the public key of the key's latest version.

        Returns:
            Base64 public key

        Raises:
            NotFoundError: If the key does not exist
        """
        key_name = self.get_key_name(account_name)
        response = await self.request("GET", f"/v1/{self.transit_path}/keys/{key_name}")
        data = response["data"]
        latest = str(data["latest_version"])
        return data["keys"][latest]["public_key"]

    async def key_exists(self, account_name: str) -> bool:
        try:
            await self.get_public_key(account_name)
            return True
        except NotFoundError:
            return False

    async def list_keys(self) -> List[str]:
        """List account names that have a key under the configured prefix."""
        try:
            response = await self.request("LIST", f"/v1/{self.transit_path}/keys")
        except NotFoundError:
            # Vault answers 404 when there are no keys at all
            return []

        keys = response.get("data", {}).get("keys") or []
        return [k[len(self.key_prefix):] for k in keys if k.startswith(self.key_prefix)]

    async def sign(self, account_name: str, data: bytes) -> bytes:
        """
        Sign raw bytes with the key's latest version.

        Args:
            account_name: Account name
            data: Message to sign

        Returns:
            64-byte Ed25519 signature
        """
        key_name = self.get_key_name(account_name)
        response = await self.request("POST", f"/v1/{self.transit_path}/sign/{key_name}", {
            "input": base64.b64encode(data).decode("ascii"),
            "signature_algorithm": "ed25519",
        })

        # Vault returns "vault:v<version>:<base64 signature>"
        signature = response["data"]["signature"]
        return base64.b64decode(signature.split(":")[-1])

    async def delete_key(self, account_name: str) -> None:
        """
        Delete a key. Irreversible.

        Keys are deletion-protected by default, so the key is first marked
        deletion-allowed and then deleted.
        """
        key_name = self.get_key_name(account_name)
        await self.request("POST", f"/v1/{self.transit_path}/keys/{key_name}/config", {
            "deletion_allowed": True,
        })
        await self.request("DELETE", f"/v1/{self.transit_path}/keys/{key_name}")
        logger.debug(f"Deleted transit key {key_name}")

    # =========================================================================
    # Account metadata (KV v2)
    # =========================================================================

    async def put_account_metadata(self, account_name: str, metadata: Dict[str, Any]) -> None:
        await self.request("POST", f"/v1/{self.kv_path}/data/{METADATA_FOLDER}/{account_name}", {
            "data": metadata,
        })

    async def get_account_metadata(self, account_name: str) -> Optional[Dict[str, Any]]:
        """Get account metadata, or None if the account has none."""
        try:
            response = await self.request(
                "GET", f"/v1/{self.kv_path}/data/{METADATA_FOLDER}/{account_name}"
            )
        except NotFoundError:
            return None
        return response["data"]["data"]

    async def account_metadata_exists(self, account_name: str) -> bool:
        return await self.get_account_metadata(account_name) is not None

    async def list_account_names(self) -> List[str]:
        try:
            response = await self.request("LIST", f"/v1/{self.kv_path}/metadata/{METADATA_FOLDER}")
        except NotFoundError:
            return []
        return response.get("data", {}).get("keys") or []

    async def delete_account_metadata(self, account_name: str) -> None:
        """Delete all versions of an account's metadata."""
        await self.request("DELETE", f"/v1/{self.kv_path}/metadata/{METADATA_FOLDER}/{account_name}")

    # =========================================================================
    # Server state
    # =========================================================================

    async def is_available(self) -> bool:
        """Check that Vault is reachable, initialized and unsealed."""
        try:
            _, data = await self._probe("/v1/sys/health")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug(f"Vault health check failed: {e}")
            return False
        return bool(data and data.get("initialized") and not data.get("sealed"))

    async def get_seal_status(self) -> Dict[str, bool]:
        """
        Get the seal status without authenticating.

        Any failure is reported as uninitialized and sealed.
        """
        try:
            status, data = await self._probe("/v1/sys/seal-status")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug(f"Vault seal status check failed: {e}")
            return {"initialized": False, "sealed": True}

        if status >= 400 or not data:
            return {"initialized": False, "sealed": True}
        return {"initialized": bool(data.get("initialized")), "sealed": bool(data.get("sealed"))}

    def __repr__(self) -> str:
        return f"VaultClient(url='{self.url}', transit='{self.transit_path}', kv='{self.kv_path}')"


def _map_http_error(status: int, method: str, path: str, text: str) -> AccountError:
    """Map a non-2xx Vault response to a taxonomy error."""
    details = {"status": status, "method": method, "path": path}
    message = f"Vault API error: {status} {text.strip()}"

    if status == 404:
        return NotFoundError(message, details=details)
    if status == 400:
        return InvalidInputError(message, details=details)
    if status in (401, 403):
        return UnavailableError(message, details=details,
                                hint="Check the Vault token and policy: vibekit vault token")
    if status == 503 and "sealed" in text.lower():
        return VaultSealedError(message, details=details)
    return UnavailableError(message, details=details, hint=_STATUS_HINT)


__all__ = ["VaultClient", "METADATA_FOLDER"]
