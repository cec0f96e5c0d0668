"""
Wallet provider constants.
"""

from typing import Dict

# WalletConnect chain ids for Algorand networks
ALGORAND_CHAIN_IDS: Dict[str, int] = {
    "mainnet": 416001,
    "testnet": 416002,
}

CHAIN_ID_TO_NETWORK: Dict[int, str] = {v: k for k, v in ALGORAND_CHAIN_IDS.items()}

# Pera publishes its bridge servers here
PERA_CONFIG_URL = "https://wc.perawallet.app/config.json"

SIGN_TXN_METHOD = "algo_signTxn"

SIGNING_TIMEOUT = 120.0
PAIRING_TIMEOUT = 300.0

# Delay before the pairing page sockets close, so the final status renders
CLOSE_DELAY = 0.5

SESSION_SCHEMA_VERSION = 1
DEFAULT_SESSION_TTL = 7 * 24 * 3600
