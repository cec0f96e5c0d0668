"""
WalletConnect v1 bridge connector.

Speaks the bridge-based WalletConnect protocol over a websocket:

- Socket frames are ``{topic, type: "pub"|"sub", payload, silent}``.
- Payloads are JSON-RPC messages encrypted with AES-256-CBC under the
  session key, authenticated with HMAC-SHA256 over ``ciphertext || iv``.
- The dapp publishes ``wc_sessionRequest`` to the handshake topic and
  listens on its own client id; the wallet answers there.
- ``wc_sessionUpdate`` from the wallet updates accounts or, with
  ``approved: false``, ends the session.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlparse
import asyncio
import json
import logging
import os
import random
import time
import uuid

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException
from cryptography.hazmat.primitives import hashes, hmac, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.exceptions import InvalidSignature

from ..runtime.config import AppMetadata
from ..runtime.errors import InitializationError, UnavailableError
from .connector import Connected, PairingConnector, Rejected, RequestError
from .types import StoredSession, now_ms

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = 1


# =============================================================================
# Payload encryption
# =============================================================================

def _hmac(key: bytes, data: bytes) -> hmac.HMAC:
    h = hmac.HMAC(key, hashes.SHA256())
    h.update(data)
    return h


def encrypt_payload(message: Dict[str, Any], key: bytes, iv: Optional[bytes] = None) -> Dict[str, str]:
    """
    Encrypt a JSON-RPC message for the bridge.

    Args:
        message: JSON-serializable message
        key: 32-byte session key
        iv: 16-byte IV (random when omitted)

    Returns:
        ``{data, hmac, iv}`` with hex-encoded values
    """
    iv = iv or os.urandom(16)
    padder = padding.PKCS7(128).padder()
    plaintext = padder.update(json.dumps(message).encode("utf-8")) + padder.finalize()

    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(plaintext) + encryptor.finalize()

    signature = _hmac(key, ciphertext + iv).finalize()
    return {"data": ciphertext.hex(), "hmac": signature.hex(), "iv": iv.hex()}


def decrypt_payload(payload: Dict[str, str], key: bytes) -> Dict[str, Any]:
    """
    Verify and decrypt a bridge payload.

    Raises:
        ValueError: If the HMAC does not verify or the payload is malformed
    """
    try:
        ciphertext = bytes.fromhex(payload["data"])
        iv = bytes.fromhex(payload["iv"])
        expected = bytes.fromhex(payload["hmac"])
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed payload: {e}")

    try:
        _hmac(key, ciphertext + iv).verify(expected)
    except InvalidSignature:
        raise ValueError("Payload HMAC mismatch")

    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()
    unpadder = padding.PKCS7(128).unpadder()
    plaintext = unpadder.update(padded) + unpadder.finalize()
    return json.loads(plaintext.decode("utf-8"))


def payload_id() -> int:
    """JSON-RPC id: epoch milliseconds with three random digits appended."""
    return int(time.time() * 1000) * 1000 + random.randint(0, 999)


def bridge_ws_url(bridge: str) -> str:
    """Convert a bridge URL to its websocket form."""
    parsed = urlparse(bridge)
    if parsed.scheme == "https":
        return parsed._replace(scheme="wss").geturl()
    if parsed.scheme == "http":
        return parsed._replace(scheme="ws").geturl()
    if parsed.scheme in ("ws", "wss"):
        return bridge
    raise ValueError(f"Invalid bridge URL scheme: {parsed.scheme}")


def _peer_meta(data: Optional[Dict[str, Any]]) -> Optional[AppMetadata]:
    if not data:
        return None
    return AppMetadata(
        name=data.get("name") or "",
        description=data.get("description") or "",
        url=data.get("url") or "",
        icons=list(data.get("icons") or []),
    )


# =============================================================================
# Connector
# =============================================================================

class BridgeConnector(PairingConnector):
    """
    WalletConnect v1 dapp-side connector.

    Args:
        bridge: Bridge server URL
        client_meta: Metadata shown to the wallet
        session: Stored session to resume instead of pairing anew
    """

    def __init__(self, bridge: str, client_meta: AppMetadata,
                 session: Optional[StoredSession] = None):
        super().__init__()
        self.bridge = bridge
        self.client_meta = client_meta

        self._socket = None
        self._reader_task: Optional[asyncio.Task] = None
        self._pending: Dict[int, asyncio.Future] = {}

        self._key = b""
        self._client_id = ""
        self._peer_id: Optional[str] = None
        self._peer_meta: Optional[AppMetadata] = None
        self._accounts: List[str] = []
        self._chain_id: Optional[int] = None
        self._handshake_topic = ""
        self._handshake_id = 0
        self._connected = False
        self._uri: Optional[str] = None
        # Restored session waiting for the bridge to accept its subscription
        self._resuming = False

        if session is not None:
            self._restore(session)

    def _restore(self, session: StoredSession) -> None:
        try:
            key = bytes.fromhex(session.key)
        except ValueError:
            key = b""
        if len(key) != 32 or not session.client_id or not session.peer_id or not session.accounts:
            logger.warning("Stored session is incomplete and cannot be resumed")
            return

        self.bridge = session.bridge
        self._key = key
        self._client_id = session.client_id
        self._peer_id = session.peer_id
        self._peer_meta = session.peer_meta
        self._accounts = list(session.accounts)
        self._chain_id = session.chain_id
        self._handshake_topic = session.handshake_topic
        self._handshake_id = session.handshake_id
        self._resuming = True

    @property
    def uri(self) -> Optional[str]:
        return self._uri

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def accounts(self) -> List[str]:
        return list(self._accounts)

    @property
    def chain_id(self) -> Optional[int]:
        return self._chain_id

    @property
    def peer_meta(self) -> Optional[AppMetadata]:
        return self._peer_meta

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    async def open(self) -> None:
        """Connect to the bridge and subscribe to this client's topic."""
        if self._socket is not None:
            return

        url = bridge_ws_url(self.bridge)
        logger.debug(f"Connecting to bridge {url}")
        self._socket = await websockets.connect(url, close_timeout=5.0)
        await self._socket.send(json.dumps({
            "topic": self._client_id,
            "type": "sub",
            "payload": "",
            "silent": True,
        }))
        self._reader_task = asyncio.create_task(self._reader_loop())

        if self._resuming:
            # Messages queued while offline, such as a wallet-side disconnect,
            # are delivered now and handled by the reader
            self._resuming = False
            self._connected = True
            logger.debug("Bridge accepted the resumed session")

    async def close(self) -> None:
        """Close the bridge socket. The session itself stays valid."""
        task, self._reader_task = self._reader_task, None
        if task and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        socket, self._socket = self._socket, None
        if socket is not None:
            try:
                await socket.close()
            except (OSError, WebSocketException) as e:
                logger.debug(f"Error closing bridge socket: {e}")

    async def _publish(self, topic: str, message: Dict[str, Any], silent: bool) -> None:
        if self._socket is None:
            await self.open()
        await self._socket.send(json.dumps({
            "topic": topic,
            "type": "pub",
            "payload": json.dumps(encrypt_payload(message, self._key)),
            "silent": silent,
        }))

    async def _reader_loop(self) -> None:
        try:
            async for raw in self._socket:
                await self.handle_frame(raw)
        except ConnectionClosed as e:
            logger.info(f"Bridge connection closed: {e}")
        finally:
            self._socket = None
            self._fail_pending("Bridge connection closed")
            if not self._connected:
                self._resolve(Rejected("Bridge connection closed before approval"))

    def _fail_pending(self, reason: str) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(RequestError(reason))
        self._pending.clear()

    # -------------------------------------------------------------------------
    # Incoming messages
    # -------------------------------------------------------------------------

    async def handle_frame(self, raw: str) -> None:
        """Process one socket frame from the bridge."""
        try:
            frame = json.loads(raw)
        except ValueError:
            logger.debug("Ignoring non-JSON bridge frame")
            return

        if frame.get("type") != "pub" or frame.get("topic") != self._client_id:
            return

        try:
            rpc = decrypt_payload(json.loads(frame["payload"]), self._key)
        except (ValueError, KeyError) as e:
            logger.warning(f"Dropping undecryptable bridge message: {e}")
            return

        await self._handle_rpc(rpc)

    async def _handle_rpc(self, rpc: Dict[str, Any]) -> None:
        method = rpc.get("method")
        if method == "wc_sessionUpdate":
            params = rpc.get("params") or [{}]
            await self._handle_session_update(params[0] or {})
            return
        if method:
            logger.debug(f"Ignoring wallet request {method}")
            return

        rpc_id = rpc.get("id")
        if rpc_id == self._handshake_id and not self._connected:
            self._handle_session_response(rpc)
            return

        future = self._pending.get(rpc_id)
        if future is not None and not future.done():
            future.set_result(rpc)

    def _handle_session_response(self, rpc: Dict[str, Any]) -> None:
        if "error" in rpc:
            message = (rpc["error"] or {}).get("message") or "Session request rejected"
            logger.info(f"Pairing rejected: {message}")
            self._resolve(Rejected(message))
            return

        result = rpc.get("result") or {}
        if not result.get("approved"):
            logger.info("Pairing rejected by wallet")
            self._resolve(Rejected("Session request rejected"))
            return
        if not result.get("accounts"):
            logger.info("Wallet approved the pairing without any accounts")
            self._resolve(Rejected("Wallet approved without sharing any accounts"))
            return

        self._peer_id = result.get("peerId")
        self._peer_meta = _peer_meta(result.get("peerMeta"))
        self._accounts = list(result.get("accounts") or [])
        self._chain_id = result.get("chainId")
        self._connected = True
        logger.info(f"Wallet connected with {len(self._accounts)} account(s)")
        self._resolve(Connected(accounts=self.accounts, chain_id=self._chain_id,
                                peer_meta=self._peer_meta))

    async def _handle_session_update(self, params: Dict[str, Any]) -> None:
        if not params.get("approved"):
            was_connected = self._connected
            self._connected = False
            self._accounts = []
            self._fail_pending("Session disconnected by wallet")
            if not was_connected:
                self._resolve(Rejected("Session request rejected"))
                return
            logger.info("Wallet ended the session")
            if self.on_disconnect:
                await self.on_disconnect()
            return

        if params.get("accounts") is not None:
            self._accounts = list(params["accounts"])
        if params.get("chainId") is not None:
            self._chain_id = params["chainId"]
        logger.info(f"Wallet updated session: {len(self._accounts)} account(s)")
        if self.on_session_update:
            await self.on_session_update(self.accounts, self._chain_id)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def create_session(self, chain_id: int) -> str:
        await self.close()
        self._key = os.urandom(32)
        self._client_id = str(uuid.uuid4())
        self._handshake_topic = str(uuid.uuid4())
        self._handshake_id = payload_id()
        self._connected = False
        self._peer_id = None
        self._accounts = []
        self._chain_id = chain_id
        self._outcome = None

        request = {
            "id": self._handshake_id,
            "jsonrpc": "2.0",
            "method": "wc_sessionRequest",
            "params": [{
                "peerId": self._client_id,
                "peerMeta": self.client_meta.model_dump(),
                "chainId": chain_id,
            }],
        }

        try:
            await self.open()
            await self._publish(self._handshake_topic, request, silent=True)
        except (OSError, WebSocketException) as e:
            raise InitializationError(f"Cannot reach WalletConnect bridge {self.bridge}", cause=e)

        self._uri = (
            f"wc:{self._handshake_topic}@{PROTOCOL_VERSION}"
            f"?bridge={quote(self.bridge, safe='')}&key={self._key.hex()}"
        )
        return self._uri

    async def send_custom_request(self, method: str, params: List[Any]) -> Any:
        if not self._connected or not self._peer_id:
            raise RequestError("Session not connected")

        rpc_id = payload_id()
        future = asyncio.get_running_loop().create_future()
        self._pending[rpc_id] = future
        try:
            try:
                await self._publish(self._peer_id, {
                    "id": rpc_id,
                    "jsonrpc": "2.0",
                    "method": method,
                    "params": params,
                }, silent=False)
            except (OSError, WebSocketException) as e:
                raise UnavailableError("Cannot reach WalletConnect bridge", cause=e)
            response = await future
        finally:
            self._pending.pop(rpc_id, None)

        if "error" in response:
            error = response["error"] or {}
            raise RequestError(error.get("message") or "Request failed", error.get("code"))
        return response.get("result")

    async def kill_session(self) -> None:
        if self._connected and self._peer_id:
            try:
                await self._publish(self._peer_id, {
                    "id": payload_id(),
                    "jsonrpc": "2.0",
                    "method": "wc_sessionUpdate",
                    "params": [{
                        "approved": False,
                        "chainId": None,
                        "networkId": None,
                        "accounts": None,
                    }],
                }, silent=True)
            finally:
                self._connected = False
                self._accounts = []
                await self.close()

    def snapshot(self, wallet_id: str, ttl: float) -> StoredSession:
        return StoredSession(
            wallet_id=wallet_id,
            bridge=self.bridge,
            key=self._key.hex(),
            client_id=self._client_id,
            peer_id=self._peer_id or "",
            peer_meta=self._peer_meta,
            accounts=self.accounts,
            chain_id=self._chain_id or 0,
            handshake_topic=self._handshake_topic,
            handshake_id=self._handshake_id,
            expiry=now_ms() + int(ttl * 1000),
        )


__all__ = [
    "BridgeConnector",
    "encrypt_payload",
    "decrypt_payload",
    "payload_id",
    "bridge_ws_url",
]
