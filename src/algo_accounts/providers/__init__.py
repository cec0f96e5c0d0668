"""
Account provider contract and the local keyring provider.
"""

from .base import (
    ProviderType,
    AccountInfo,
    AccountWithSigner,
    ProviderStatus,
    RemoveAccountResult,
    AccountProvider,
)
from .keyring import KeyringProvider

__all__ = [
    "ProviderType",
    "AccountInfo",
    "AccountWithSigner",
    "ProviderStatus",
    "RemoveAccountResult",
    "AccountProvider",
    "KeyringProvider",
]
