"""
Algorand account providers

Key custody and transaction signing for Algorand accounts held in a
HashiCorp Vault Transit engine, the OS keyring, or a paired mobile wallet.
All providers share the ``AccountProvider`` contract.
"""

# Errors, configuration and addresses
from .runtime.errors import *
from .runtime.config import VaultConfig, WalletConfig, AppMetadata, DEFAULT_METADATA
from .runtime.address import encode_address, decode_address, is_valid_address

# Provider contract
from .providers import (
    ProviderType,
    AccountInfo,
    AccountWithSigner,
    ProviderStatus,
    RemoveAccountResult,
    AccountProvider,
)
from .signers import Signer

# Backends
from .keys import KeyringSecretStore, MemorySecretStore, is_keyring_available
from .providers import KeyringProvider
from .vault import VaultClient, VaultProvider, VaultSystem
from .wallet import (
    WalletProviderImpl,
    WalletId,
    create_wallet,
    get_supported_wallets,
    is_wallet_supported,
    PairingOptions,
    PairingRequest,
    PairingResult,
    SessionStatus,
)

__version__ = "0.1.0"
