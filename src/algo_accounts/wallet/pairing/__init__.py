"""
Wallet pairing: bridge lookup, QR rendering, the local pairing page and the
approval flow.
"""

from .bridge_config import fetch_bridge_url, clear_bridge_cache
from .qr import GeneratedQR, generate_qr
from .server import LocalPairingServer, start_pairing_server
from .flow import create_pairing_request

__all__ = [
    "fetch_bridge_url",
    "clear_bridge_cache",
    "GeneratedQR",
    "generate_qr",
    "LocalPairingServer",
    "start_pairing_server",
    "create_pairing_request",
]
