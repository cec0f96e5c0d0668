"""
Tests for the local pairing server over a real loopback socket.
"""

import asyncio
import json

import aiohttp
import pytest
import pytest_asyncio

from algo_accounts.providers.base import AccountInfo
from algo_accounts.wallet.pairing.page import render_page
from algo_accounts.wallet.pairing.qr import generate_qr
from algo_accounts.wallet.pairing.server import LOOPBACK, start_pairing_server

URI = "wc:topic@1?bridge=https%3A%2F%2Fbridge.test&key=00ff"


@pytest_asyncio.fixture
async def server():
    qr = generate_qr(URI)
    server = await start_pairing_server(URI, qr.data_url, "testnet", "Pera Wallet",
                                        timeout=30.0, open_browser=False)
    yield server
    await server.close()


@pytest_asyncio.fixture
async def http():
    async with aiohttp.ClientSession() as session:
        yield session


class TestAccessControl:

    @pytest.mark.asyncio
    async def test_page_without_token(self, server, http):
        async with http.get(f"http://127.0.0.1:{server.port}/") as response:
            assert response.status == 403

    @pytest.mark.asyncio
    async def test_page_with_wrong_token(self, server, http):
        async with http.get(f"http://127.0.0.1:{server.port}/?token=wrong") as response:
            assert response.status == 403

    @pytest.mark.asyncio
    async def test_page_with_token(self, server, http):
        async with http.get(server.url) as response:
            assert response.status == 200
            assert response.content_type == "text/html"
            html = await response.text()
        assert URI in html
        assert server.qr_data_url in html
        assert "window.__PAIRING_CONFIG__" in html

    @pytest.mark.asyncio
    async def test_index_html_alias(self, server, http):
        async with http.get(f"http://127.0.0.1:{server.port}/index.html?token={server.token}") as response:
            assert response.status == 200

    @pytest.mark.asyncio
    async def test_websocket_without_token(self, server, http):
        with pytest.raises(aiohttp.WSServerHandshakeError) as exc:
            await http.ws_connect(f"ws://127.0.0.1:{server.port}/ws")
        assert exc.value.status == 403

    @pytest.mark.asyncio
    async def test_binds_loopback(self, server):
        assert server.url.startswith(f"http://{LOOPBACK}:")
        assert server.ws_url.startswith(f"ws://{LOOPBACK}:")


class TestStatusBroadcast:

    @pytest.mark.asyncio
    async def test_waiting_then_connected(self, server, http):
        async with http.ws_connect(server.ws_url) as ws:
            assert (await ws.receive_json(timeout=2))["status"] == "waiting"
            await server.signal_connected([AccountInfo(name="pera-1", address="ALGO_ADDR_1")])
            message = await ws.receive_json(timeout=2)
        assert message == {
            "status": "connected",
            "accounts": [{"name": "pera-1", "address": "ALGO_ADDR_1"}],
        }
        assert server.finished

    @pytest.mark.asyncio
    async def test_error_status(self, server, http):
        async with http.ws_connect(server.ws_url) as ws:
            await ws.receive_json(timeout=2)
            await server.signal_error("User rejected")
            message = await ws.receive_json(timeout=2)
        assert message == {"status": "error", "message": "User rejected"}

    @pytest.mark.asyncio
    async def test_only_first_outcome_is_sent(self, server, http):
        async with http.ws_connect(server.ws_url) as ws:
            await ws.receive_json(timeout=2)
            await server.signal_timeout()
            await server.signal_connected([])
            assert (await ws.receive_json(timeout=2))["status"] == "timeout"
        assert server._final["status"] == "timeout"

    @pytest.mark.asyncio
    async def test_late_client_gets_final_status(self, server, http):
        await server.signal_error("failed")
        async with http.ws_connect(server.ws_url) as ws:
            assert (await ws.receive_json(timeout=2))["status"] == "waiting"
            assert (await ws.receive_json(timeout=2))["status"] == "error"

    @pytest.mark.asyncio
    async def test_closes_after_outcome(self, server, http):
        await server.signal_connected([])
        await asyncio.sleep(1.0)
        with pytest.raises(aiohttp.ClientConnectionError):
            async with http.get(server.url):
                pass


class TestTimeout:

    @pytest.mark.asyncio
    async def test_broadcasts_timeout(self, http):
        server = await start_pairing_server(URI, "data:image/png;base64,", "testnet", "Pera Wallet",
                                            timeout=0.3, open_browser=False)
        try:
            async with http.ws_connect(server.ws_url) as ws:
                assert (await ws.receive_json(timeout=2))["status"] == "waiting"
                message = await ws.receive_json(timeout=2)
            assert message["status"] == "timeout"
        finally:
            await server.close()


class TestPage:

    def test_escapes_script_close(self):
        html = render_page({"uri": "</script><script>alert(1)</script>"})
        assert "</script><script>alert(1)" not in html
        assert "<\\/script>" in html

    def test_qr_outputs(self):
        qr = generate_qr(URI)
        assert qr.data_url.startswith("data:image/png;base64,")
        assert qr.ascii.strip()
