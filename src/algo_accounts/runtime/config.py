"""
Provider configuration models.

Configuration is produced by the surrounding CLI/config layer and handed to
provider constructors. Field aliases match the camelCase keys used in the
config files.
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import List, Optional, Literal

from pydantic import BaseModel, Field, field_validator

from .errors import InitializationError

DEFAULT_CONFIG_DIR = "~/.config/vibekit"

ENV_VAULT_ADDR = "VAULT_ADDR"
ENV_VAULT_TOKEN = "VAULT_TOKEN"
DEFAULT_VAULT_URL = "http://127.0.0.1:8200"

Network = Literal["mainnet", "testnet"]


class VaultConfig(BaseModel):
    """
    Configuration for the Vault provider.

    Keys live in the Transit engine under ``transit_path``; account metadata
    lives in a KV v2 engine mounted at ``kv_path``.
    """
    url: str = Field(default=DEFAULT_VAULT_URL, description="Vault server URL")
    token: str = Field(description="Vault authentication token")
    key_prefix: str = Field(default="algo-", alias="keyPrefix",
                            description="Prefix prepended to every Transit key name")
    transit_path: str = Field(default="transit", alias="transitPath",
                              description="Transit secrets engine mount path")
    kv_path: str = Field(default="vibekit", alias="kvPath",
                         description="KV v2 mount path for account metadata")
    request_timeout: float = Field(default=10.0, gt=0, alias="requestTimeout",
                                   description="Per-request timeout in seconds")

    model_config = {"populate_by_name": True}

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @classmethod
    def from_env(cls, **overrides) -> VaultConfig:
        """
        Build a config from ``VAULT_ADDR`` and ``VAULT_TOKEN``.

        Raises:
            InitializationError: If no token is available
        """
        token = overrides.pop("token", None) or os.environ.get(ENV_VAULT_TOKEN)
        if not token:
            raise InitializationError(
                "Vault token is not configured",
                hint=f"Set {ENV_VAULT_TOKEN} or run: vibekit vault token",
            )
        url = overrides.pop("url", None) or os.environ.get(ENV_VAULT_ADDR, DEFAULT_VAULT_URL)
        return cls(url=url, token=token, **overrides)


class AppMetadata(BaseModel):
    """Application metadata shown to the wallet during pairing."""
    name: str
    description: str
    url: str
    icons: List[str] = Field(default_factory=list)


DEFAULT_METADATA = AppMetadata(
    name="VibeKit",
    description="AI-powered Algorand development toolkit",
    url="https://getvibekit.ai",
    icons=["https://getvibekit.ai/icon.png"],
)


class WalletConfig(BaseModel):
    """Configuration for mobile wallet providers."""
    network: Network = Field(default="testnet", description="Network to connect to")
    session_dir: Path = Field(default=Path(DEFAULT_CONFIG_DIR), alias="sessionDir",
                              validate_default=True,
                              description="Directory holding one session file per wallet")
    metadata: AppMetadata = Field(default=DEFAULT_METADATA, alias="appMetadata")
    bridge_url: Optional[str] = Field(default=None, alias="bridgeUrl",
                                      description="Bridge override; skips the config fetch")
    session_ttl: float = Field(default=7 * 24 * 3600, gt=0, alias="sessionTtl",
                               description="Seconds a stored session stays valid")
    pairing_timeout: float = Field(default=300.0, gt=0, alias="pairingTimeout")
    signing_timeout: float = Field(default=120.0, gt=0, alias="signingTimeout")

    model_config = {"populate_by_name": True}

    @field_validator("session_dir", mode="before")
    @classmethod
    def expand_home(cls, v) -> Path:
        return Path(os.path.expanduser(str(v)))

    @property
    def network_label(self) -> str:
        """Display name used in wallet instructions."""
        return "MainNet" if self.network == "mainnet" else "TestNet"


__all__ = [
    "VaultConfig",
    "WalletConfig",
    "AppMetadata",
    "DEFAULT_METADATA",
    "DEFAULT_CONFIG_DIR",
    "Network",
]
