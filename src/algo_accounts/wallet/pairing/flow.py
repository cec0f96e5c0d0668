"""
Pairing flow.

Turns a connector with a fresh session into a ``PairingRequest``: QR codes,
optional browser page, and an approval future. The approval races the
connector's outcome against the pairing timeout; whichever comes first
wins. The session is persisted only when the wallet confirms the
connection, and nothing is written after a timeout.
"""

from __future__ import annotations
from typing import Callable, List, Optional
import asyncio
import logging

from ...providers.base import AccountInfo
from ...runtime.config import WalletConfig
from ...runtime.errors import InitializationError, PairingRejectedError, PairingTimeoutError
from ..connector import PairingConnector, Rejected
from ..constants import CHAIN_ID_TO_NETWORK
from ..session_store import SessionStore
from ..types import PairingOptions, PairingRequest, PairingResult
from .qr import generate_qr
from .server import LocalPairingServer, start_pairing_server

logger = logging.getLogger(__name__)

# Maps approved addresses to named accounts and records them on the wallet
AddressMapper = Callable[[List[str]], List[AccountInfo]]


async def create_pairing_request(
    connector: PairingConnector,
    config: WalletConfig,
    wallet_id: str,
    wallet_name: str,
    session_store: SessionStore,
    map_addresses: AddressMapper,
    options: Optional[PairingOptions] = None,
) -> PairingRequest:
    """
    Create a pairing request for a connector that has started a session.

    Args:
        connector: Connector with a pending session
        config: Wallet configuration
        wallet_id: Wallet brand being paired
        wallet_name: Wallet display name
        session_store: Where the session is saved on approval
        map_addresses: Converts approved addresses to accounts
        options: Browser mode and timeout settings

    Returns:
        Pairing request with QR codes and the approval future
    """
    uri = connector.uri
    if not uri:
        raise InitializationError("Failed to generate WalletConnect URI")

    options = options or PairingOptions()
    timeout = options.timeout or config.pairing_timeout
    qr = generate_qr(uri)

    server = None
    if options.use_browser:
        server = await start_pairing_server(
            uri, qr.data_url, config.network, wallet_name,
            timeout=timeout, open_browser=options.open_browser,
        )

    approval = asyncio.ensure_future(_await_approval(
        connector, config, wallet_id, wallet_name, session_store, map_addresses, timeout, server,
    ))
    approval.add_done_callback(_log_outcome)
    if server:
        approval.add_done_callback(lambda _: server.close_unless_finished())

    logger.info(f"Pairing requested for {wallet_name} on {config.network}")
    return PairingRequest(
        uri=uri,
        qr_ascii=qr.ascii,
        qr_data_url=qr.data_url,
        instructions=f"Open {wallet_name} on {config.network_label} and scan this QR code to connect.",
        approval=approval,
        browser_url=server.url if server else None,
    )


async def _await_approval(
    connector: PairingConnector,
    config: WalletConfig,
    wallet_id: str,
    wallet_name: str,
    session_store: SessionStore,
    map_addresses: AddressMapper,
    timeout: float,
    server: Optional[LocalPairingServer],
) -> PairingResult:
    try:
        outcome = await asyncio.wait_for(asyncio.shield(connector.outcome()), timeout)
    except asyncio.TimeoutError:
        # Detach from the bridge so a late approval cannot land
        await connector.close()
        if server:
            await server.signal_timeout()
        raise PairingTimeoutError()

    if isinstance(outcome, Rejected):
        if server:
            await server.signal_error(outcome.reason)
        raise PairingRejectedError(outcome.reason)

    if not outcome.accounts:
        reason = "Wallet approved without sharing any accounts"
        if server:
            await server.signal_error(reason)
        raise PairingRejectedError(reason)

    session_store.save(connector.snapshot(wallet_id, config.session_ttl))

    accounts = map_addresses(outcome.accounts)
    result = PairingResult(
        wallet_id=wallet_id,
        wallet_name=wallet_name,
        accounts=accounts,
        network=CHAIN_ID_TO_NETWORK.get(outcome.chain_id, config.network),
    )
    if server:
        await server.signal_connected(accounts)
    return result


def _log_outcome(approval: asyncio.Future) -> None:
    # Marks the exception retrieved so an unawaited approval does not warn
    if approval.cancelled():
        return
    error = approval.exception()
    if error is not None:
        logger.info(f"Pairing did not complete: {error}")


__all__ = ["create_pairing_request", "AddressMapper"]
