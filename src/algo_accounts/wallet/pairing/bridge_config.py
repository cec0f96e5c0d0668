"""
Bridge URL lookup from a wallet's published configuration.
"""

from __future__ import annotations
from typing import Dict, Optional
import asyncio
import logging

import aiohttp

from ...runtime.errors import BridgeFetchError
from ..constants import PERA_CONFIG_URL

logger = logging.getLogger(__name__)

_FETCH_TIMEOUT = 10.0

# Resolved bridge per config URL, for the life of the process
_bridge_cache: Dict[str, str] = {}


async def fetch_bridge_url(config_url: str = PERA_CONFIG_URL,
                           session: Optional[aiohttp.ClientSession] = None) -> str:
    """
    Resolve the bridge server from a wallet config endpoint.

    The first listed server wins. Results are cached per process.

    Raises:
        BridgeFetchError: If the config cannot be fetched or lists no servers
    """
    cached = _bridge_cache.get(config_url)
    if cached:
        return cached

    owns_session = session is None
    session = session or aiohttp.ClientSession()
    try:
        timeout = aiohttp.ClientTimeout(total=_FETCH_TIMEOUT)
        async with session.get(config_url, timeout=timeout) as response:
            if response.status != 200:
                raise BridgeFetchError(f"HTTP {response.status}")
            config = await response.json(content_type=None)
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        raise BridgeFetchError(str(e) or e.__class__.__name__, cause=e)
    finally:
        if owns_session:
            await session.close()

    servers = config.get("servers") if isinstance(config, dict) else None
    if not servers:
        raise BridgeFetchError("No bridge servers in config")

    bridge = servers[0]
    _bridge_cache[config_url] = bridge
    logger.debug(f"Using bridge {bridge}")
    return bridge


def clear_bridge_cache() -> None:
    _bridge_cache.clear()


__all__ = ["fetch_bridge_url", "clear_bridge_cache"]
