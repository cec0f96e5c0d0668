"""
Shared fixtures: an in-process fake Vault, Vault clients bound to it, and
wallet configuration rooted in a temporary directory.
"""

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestServer

from algo_accounts.runtime.config import VaultConfig, WalletConfig
from algo_accounts.vault.client import VaultClient
from algo_accounts.wallet.pairing.bridge_config import clear_bridge_cache

from helpers import FakeVault, ROOT_TOKEN


@pytest_asyncio.fixture
async def fake_vault():
    """Fake Vault server listening on a loopback port."""
    vault = FakeVault()
    server = TestServer(vault.app)
    await server.start_server()
    vault.url = str(server.make_url("")).rstrip("/")
    yield vault
    await server.close()


@pytest.fixture
def vault_config(fake_vault):
    return VaultConfig(url=fake_vault.url, token=ROOT_TOKEN, request_timeout=2.0)


@pytest_asyncio.fixture
async def vault_client(vault_config):
    client = VaultClient(vault_config)
    yield client
    await client.close()


@pytest.fixture
def wallet_config(tmp_path):
    """Wallet config with sessions under a temp dir and a fixed bridge."""
    return WalletConfig(
        network="testnet",
        session_dir=tmp_path,
        bridge_url="https://bridge.test",
        pairing_timeout=5.0,
        signing_timeout=5.0,
    )


@pytest.fixture(autouse=True)
def _reset_bridge_cache():
    clear_bridge_cache()
    yield
    clear_bridge_cache()
