"""
Tests for the wallet account provider facade.
"""

import asyncio

import pytest
import pytest_asyncio

from algo_accounts.providers.base import AccountInfo, ProviderType
from algo_accounts.runtime.errors import (
    CannotCreateAccountError,
    NoSessionError,
    NotFoundError,
    SessionExpiredError,
)
from algo_accounts.wallet.provider import WalletProviderImpl
from algo_accounts.wallet.session_store import SessionStore
from algo_accounts.wallet.wallets import create_wallet

from helpers import ConnectorRecorder


@pytest.fixture
def recorder():
    return ConnectorRecorder()


@pytest.fixture
def provider(recorder, wallet_config):
    return WalletProviderImpl(create_wallet("pera", recorder), wallet_config)


@pytest_asyncio.fixture
async def paired(provider, recorder):
    request = await provider.pair()
    recorder.last.approve(["ALGO_ADDR_1", "ALGO_ADDR_2"])
    await request.approval
    return provider


class TestContract:

    @pytest.mark.asyncio
    async def test_cannot_create_accounts(self, provider):
        assert provider.type == ProviderType.WALLET
        assert not provider.can_create_accounts()
        with pytest.raises(CannotCreateAccountError):
            await provider.create_account("dev")

    @pytest.mark.asyncio
    async def test_unpaired(self, provider):
        assert await provider.list_accounts() == []
        assert await provider.get_account("pera-1") is None
        assert not await provider.is_available()
        with pytest.raises(NoSessionError):
            await provider.get_account_with_signer("pera-1")

    @pytest.mark.asyncio
    async def test_unpaired_status(self, provider):
        status = await provider.get_session_status()
        assert not status.connected
        assert status.accounts == []
        assert not (await provider.get_status()).ready


class TestPaired:

    @pytest.mark.asyncio
    async def test_accounts(self, paired):
        assert await paired.list_accounts() == [
            AccountInfo(name="pera-1", address="ALGO_ADDR_1"),
            AccountInfo(name="pera-2", address="ALGO_ADDR_2"),
        ]
        assert (await paired.get_account("pera-2")).address == "ALGO_ADDR_2"
        assert await paired.is_available()

    @pytest.mark.asyncio
    async def test_account_with_signer(self, paired):
        bound = await paired.get_account_with_signer("pera-1")
        assert bound.address == "ALGO_ADDR_1"
        assert callable(bound.signer)

    @pytest.mark.asyncio
    async def test_unknown_account(self, paired):
        with pytest.raises(NotFoundError):
            await paired.get_account_with_signer("pera-9")

    @pytest.mark.asyncio
    async def test_session_status(self, paired):
        status = await paired.get_session_status()
        assert status.connected
        assert status.wallet_name == "Pera Wallet"
        assert status.network == "testnet"
        assert len(status.accounts) == 2
        assert status.expires_at is not None

        provider_status = await paired.get_status()
        assert provider_status.ready
        assert "2 account" in provider_status.message


class TestDisconnect:

    @pytest.mark.asyncio
    async def test_disconnect_clears_session_when_kill_fails(self, paired, recorder, wallet_config):
        recorder.last.kill_error = OSError("bridge unreachable")
        await paired.disconnect()

        assert not SessionStore(wallet_config.session_dir, "pera").path.exists()
        assert not await paired.is_available()
        assert await paired.list_accounts() == []

    @pytest.mark.asyncio
    async def test_resume_on_initialize(self, paired, wallet_config):
        fresh = WalletProviderImpl(create_wallet("pera", ConnectorRecorder()), wallet_config)
        assert [a.name for a in await fresh.list_accounts()] == ["pera-1", "pera-2"]


class TestExpiry:

    @pytest.mark.asyncio
    async def test_expired_session_is_ended(self, recorder, wallet_config):
        config = wallet_config.model_copy(update={"session_ttl": 0.2})
        provider = WalletProviderImpl(create_wallet("pera", recorder), config)
        request = await provider.pair()
        recorder.last.approve(["ALGO_ADDR_1"])
        await request.approval

        await asyncio.sleep(0.3)

        with pytest.raises(SessionExpiredError):
            await provider.get_account_with_signer("pera-1")
        assert recorder.last.killed
        assert not (await provider.get_session_status()).connected
        assert not SessionStore(config.session_dir, "pera").path.exists()
