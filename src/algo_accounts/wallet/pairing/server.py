"""
Local pairing server.

An ephemeral HTTP + websocket server on the loopback interface that shows
the pairing QR code in a browser and pushes the connection status to it.
Access is gated by a random capability token carried in the URL; requests
without it get 403 and websocket upgrades are refused.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, Set
import asyncio
import json
import logging
import secrets
import webbrowser

from aiohttp import web, WSMsgType

from ...providers.base import AccountInfo
from ..constants import CLOSE_DELAY, PAIRING_TIMEOUT
from .page import render_page

logger = logging.getLogger(__name__)

LOOPBACK = "127.0.0.1"


class LocalPairingServer:
    """
    Browser pairing page for one pairing attempt.

    Args:
        uri: Pairing URI
        qr_data_url: QR code as a PNG data URL
        network: Network being paired
        wallet_name: Wallet display name
        timeout: Seconds before a timeout status is broadcast
        open_browser: Open the page in the default browser on start
    """

    def __init__(self, uri: str, qr_data_url: str, network: str, wallet_name: str,
                 timeout: float = PAIRING_TIMEOUT, open_browser: bool = True):
        self.uri = uri
        self.qr_data_url = qr_data_url
        self.network = network
        self.wallet_name = wallet_name
        self.timeout = timeout
        self.open_browser = open_browser

        self.token = secrets.token_urlsafe(32)
        self.port: Optional[int] = None

        self._runner: Optional[web.AppRunner] = None
        self._clients: Set[web.WebSocketResponse] = set()
        self._final: Optional[Dict[str, Any]] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._close_handle: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Future] = set()
        self._closed = False

    @property
    def url(self) -> str:
        return f"http://{LOOPBACK}:{self.port}/?token={self.token}"

    @property
    def ws_url(self) -> str:
        return f"ws://{LOOPBACK}:{self.port}/ws?token={self.token}"

    @property
    def finished(self) -> bool:
        return self._final is not None

    async def start(self) -> LocalPairingServer:
        """Bind to an ephemeral loopback port and start serving."""
        app = web.Application()
        app.router.add_get("/", self._handle_page)
        app.router.add_get("/index.html", self._handle_page)
        app.router.add_get("/ws", self._handle_ws)

        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, LOOPBACK, 0)
        await site.start()
        self.port = self._runner.addresses[0][1]
        logger.info(f"Pairing page listening on {LOOPBACK}:{self.port}")

        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.timeout, self._on_timeout)

        if self.open_browser:
            self._launch_browser(loop)
        return self

    def _launch_browser(self, loop: asyncio.AbstractEventLoop) -> None:
        future = loop.run_in_executor(None, webbrowser.open, self.url)

        def done(f: asyncio.Future) -> None:
            if f.cancelled():
                return
            if f.exception() is not None:
                logger.debug(f"Could not open browser: {f.exception()}")
            elif not f.result():
                logger.debug("No browser available to open the pairing page")

        future.add_done_callback(done)

    def _authorized(self, request: web.Request) -> bool:
        return secrets.compare_digest(request.query.get("token", ""), self.token)

    async def _handle_page(self, request: web.Request) -> web.Response:
        if not self._authorized(request):
            return web.Response(status=403, text="Forbidden - Invalid or missing token")

        html = render_page({
            "uri": self.uri,
            "qrDataUrl": self.qr_data_url,
            "network": self.network,
            "walletName": self.wallet_name,
            "wsUrl": self.ws_url,
        })
        return web.Response(text=html, content_type="text/html")

    async def _handle_ws(self, request: web.Request) -> web.StreamResponse:
        if not self._authorized(request):
            return web.Response(status=403, text="Forbidden")

        ws = web.WebSocketResponse()
        await ws.prepare(request)
        self._clients.add(ws)
        try:
            await ws.send_json({"status": "waiting", "message": "Waiting for connection..."})
            if self._final is not None:
                await ws.send_json(self._final)
            async for msg in ws:
                # Clients only listen
                if msg.type == WSMsgType.ERROR:
                    break
        finally:
            self._clients.discard(ws)
        return ws

    async def _broadcast(self, message: Dict[str, Any]) -> None:
        data = json.dumps(message)
        for ws in list(self._clients):
            try:
                await ws.send_str(data)
            except (ConnectionResetError, RuntimeError) as e:
                logger.debug(f"Dropping pairing page client: {e}")
                self._clients.discard(ws)

    async def _finish(self, message: Dict[str, Any]) -> None:
        if self._final is not None or self._closed:
            return
        self._final = message
        if self._timer:
            self._timer.cancel()
        await self._broadcast(message)
        self._close_handle = asyncio.get_running_loop().call_later(CLOSE_DELAY, self._spawn_close)

    def _spawn(self, coro) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _spawn_close(self) -> None:
        self._spawn(self.close())

    def _on_timeout(self) -> None:
        logger.info("Pairing page timed out")
        self._spawn(self.signal_timeout())

    async def signal_connected(self, accounts: List[AccountInfo]) -> None:
        await self._finish({
            "status": "connected",
            "accounts": [{"name": a.name, "address": a.address} for a in accounts],
        })

    async def signal_error(self, message: str) -> None:
        await self._finish({"status": "error", "message": message})

    async def signal_timeout(self) -> None:
        await self._finish({"status": "timeout", "message": "Connection timed out. Please try again."})

    def close_unless_finished(self) -> None:
        """Close now unless a final status is still being shown."""
        if self._final is None and not self._closed:
            self._spawn_close()

    async def close(self) -> None:
        """Stop serving. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        for handle in (self._timer, self._close_handle):
            if handle:
                handle.cancel()

        for ws in list(self._clients):
            await ws.close()
        self._clients.clear()

        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        logger.debug("Pairing page closed")


async def start_pairing_server(uri: str, qr_data_url: str, network: str, wallet_name: str,
                               timeout: float = PAIRING_TIMEOUT,
                               open_browser: bool = True) -> LocalPairingServer:
    server = LocalPairingServer(uri, qr_data_url, network, wallet_name,
                                timeout=timeout, open_browser=open_browser)
    return await server.start()


__all__ = ["LocalPairingServer", "start_pairing_server"]
