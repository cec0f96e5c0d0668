"""Bridge lookup from a wallet's published config."""

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from algo_accounts.runtime.errors import BridgeFetchError
from algo_accounts.wallet.pairing.bridge_config import fetch_bridge_url


class ConfigServer:

    def __init__(self):
        self.body = {"servers": ["https://bridge-a.test", "https://bridge-b.test"]}
        self.status = 200
        self.hits = 0
        self.app = web.Application()
        self.app.router.add_get("/config.json", self._config)
        self.url = ""

    async def _config(self, request: web.Request) -> web.Response:
        self.hits += 1
        return web.json_response(self.body, status=self.status)


@pytest_asyncio.fixture
async def config_server():
    config = ConfigServer()
    server = TestServer(config.app)
    await server.start_server()
    config.url = str(server.make_url("/config.json"))
    yield config
    await server.close()


class TestFetchBridgeUrl:

    @pytest.mark.asyncio
    async def test_first_server_wins(self, config_server):
        assert await fetch_bridge_url(config_server.url) == "https://bridge-a.test"

    @pytest.mark.asyncio
    async def test_cached(self, config_server):
        await fetch_bridge_url(config_server.url)
        config_server.body = {"servers": ["https://other.test"]}
        assert await fetch_bridge_url(config_server.url) == "https://bridge-a.test"
        assert config_server.hits == 1

    @pytest.mark.asyncio
    async def test_no_servers(self, config_server):
        config_server.body = {"servers": []}
        with pytest.raises(BridgeFetchError):
            await fetch_bridge_url(config_server.url)

    @pytest.mark.asyncio
    async def test_http_error(self, config_server):
        config_server.status = 500
        with pytest.raises(BridgeFetchError):
            await fetch_bridge_url(config_server.url)
