"""
Runtime components shared by all providers: errors, configuration and
address encoding.
"""

from .errors import *
from .address import encode_address, decode_address, is_valid_address
from .config import VaultConfig, WalletConfig, AppMetadata, DEFAULT_METADATA
