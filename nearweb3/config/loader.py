"""
nearweb3 TOML Configuration Loader

Loads config.toml at startup with environment variable overrides.
Defaults come from the .env-driven values in ``nearweb3.constants``.

Environment variable mapping:
    [provider] network        → NEARWEB3_NETWORK
    [provider] node_url       → NEARWEB3_NODE_URL
    [provider] account_id     → NEARWEB3_ACCOUNT_ID
    [provider] evm_account_id → NEARWEB3_EVM_ACCOUNT_ID
    [rpc.http] host           → NEARWEB3_HOST
    [rpc.http] port           → NEARWEB3_PORT
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from ..constants import (
    DEFAULT_EVM_ACCOUNT_ID,
    NEAR_NET_VERSION,
    NEAR_NET_VERSION_BETANET,
    NEAR_NET_VERSION_TEST,
    NEARWEB3_HOST,
    NEARWEB3_NETWORK,
    NEARWEB3_PORT,
)
from ..crypto.address import is_valid_account_id
from ..exceptions import ConfigurationError
from ..logger import get_logger
from ..rpc.config import RPCConfig

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Network presets
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NetworkConfig:
    """Connection details of one NEAR network."""
    name: str
    node_url: str
    network_id: str
    net_version: str
    evm_account_id: str = DEFAULT_EVM_ACCOUNT_ID
    wallet_url: Optional[str] = None
    explorer_url: Optional[str] = None
    key_path: Optional[str] = None


NETWORKS: Dict[str, NetworkConfig] = {
    "mainnet": NetworkConfig(
        name="mainnet",
        node_url="https://rpc.mainnet.near.org",
        network_id="mainnet",
        net_version=NEAR_NET_VERSION,
        wallet_url="https://wallet.near.org",
        explorer_url="https://explorer.near.org",
    ),
    "testnet": NetworkConfig(
        name="testnet",
        node_url="https://rpc.testnet.near.org",
        network_id="default",
        net_version=NEAR_NET_VERSION_TEST,
        wallet_url="https://wallet.testnet.near.org",
        explorer_url="https://explorer.testnet.near.org",
    ),
    "betanet": NetworkConfig(
        name="betanet",
        node_url="https://rpc.betanet.near.org",
        network_id="betanet",
        net_version=NEAR_NET_VERSION_BETANET,
        wallet_url="https://wallet.betanet.near.org",
        explorer_url="https://explorer.betanet.near.org",
    ),
    "local": NetworkConfig(
        name="local",
        node_url="http://127.0.0.1:3030",
        network_id="local",
        net_version=NEAR_NET_VERSION_TEST,
        wallet_url="http://127.0.0.1:4000",
        explorer_url="http://127.0.0.1:3019",
    ),
    "test": NetworkConfig(
        name="test",
        node_url="http://localhost:3030",
        network_id="test",
        net_version=NEAR_NET_VERSION_TEST,
        key_path="keys/test.near.json",
    ),
}


def get_network_config(name: str) -> NetworkConfig:
    """
    Look up a network preset.

    Raises:
        ConfigurationError: for an unconfigured network name
    """
    try:
        return NETWORKS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unconfigured network '{name}'. Expected one of: {', '.join(NETWORKS)}"
        ) from None


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

@dataclass
class ProviderSectionConfig:
    """[provider] section."""
    network: str = str(NEARWEB3_NETWORK)
    account_id: str = "test.near"
    node_url: Optional[str] = None
    evm_account_id: Optional[str] = None
    key_path: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProviderSectionConfig":
        return cls(
            network=data.get("network", str(NEARWEB3_NETWORK)),
            account_id=data.get("account_id", "test.near"),
            node_url=data.get("node_url"),
            evm_account_id=data.get("evm_account_id"),
            key_path=data.get("key_path"),
        )

    def apply_env(self) -> None:
        """Override from environment variables."""
        if v := os.environ.get("NEARWEB3_NETWORK"):
            self.network = v
        if v := os.environ.get("NEARWEB3_NODE_URL"):
            self.node_url = v
        if v := os.environ.get("NEARWEB3_ACCOUNT_ID"):
            self.account_id = v
        if v := os.environ.get("NEARWEB3_EVM_ACCOUNT_ID"):
            self.evm_account_id = v
        if v := os.environ.get("NEARWEB3_KEY_PATH"):
            self.key_path = v


def _default_rpc_config() -> RPCConfig:
    rpc = RPCConfig()
    rpc.http.host = str(NEARWEB3_HOST)
    rpc.http.port = int(NEARWEB3_PORT)
    return rpc


# ---------------------------------------------------------------------------
# Root config
# ---------------------------------------------------------------------------

@dataclass
class ProviderConfig:
    """
    Unified provider configuration.

    Loads every section of config.toml and applies environment variable
    overrides. This is the single source of truth at runtime.
    """
    provider: ProviderSectionConfig = field(default_factory=ProviderSectionConfig)
    rpc: RPCConfig = field(default_factory=_default_rpc_config)

    # --- factories --------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProviderConfig":
        """Create ProviderConfig from a parsed TOML dict."""
        rpc = _default_rpc_config()
        if "rpc" in data:
            rpc_data = dict(data["rpc"])
            rpc_data["http"] = {**rpc.to_dict()["http"], **rpc_data.get("http", {})}
            rpc = RPCConfig.from_dict(rpc_data)
        return cls(
            provider=ProviderSectionConfig.from_dict(data.get("provider", {})),
            rpc=rpc,
        )

    @classmethod
    def from_file(cls, config_path: str) -> "ProviderConfig":
        """
        Load configuration from a TOML file.

        A missing file is not an error: defaults with environment overrides
        are used instead.
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        try:
            with open(path, "rb") as f:
                raw = tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML in {config_path}: {e}") from e

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    # --- env overrides ----------------------------------------------------

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.provider.apply_env()
        if v := os.environ.get("NEARWEB3_HOST"):
            self.rpc.http.host = v
        if v := os.environ.get("NEARWEB3_PORT"):
            try:
                self.rpc.http.port = int(v)
            except ValueError:
                raise ConfigurationError(f"NEARWEB3_PORT must be an integer, got {v!r}") from None

    # --- resolution -------------------------------------------------------

    @property
    def network(self) -> NetworkConfig:
        """The selected network preset with [provider] overrides applied."""
        preset = get_network_config(self.provider.network)
        overrides = {}
        if self.provider.node_url:
            overrides["node_url"] = self.provider.node_url
        if self.provider.evm_account_id:
            overrides["evm_account_id"] = self.provider.evm_account_id
        if self.provider.key_path:
            overrides["key_path"] = self.provider.key_path
        return replace(preset, **overrides) if overrides else preset

    # --- validation -------------------------------------------------------

    def validate(self) -> bool:
        """
        Validate all configuration sections.

        Raises:
            ConfigurationError: on invalid config
        """
        network = self.network
        if not is_valid_account_id(self.provider.account_id):
            raise ConfigurationError(f"Invalid account_id: {self.provider.account_id!r}")
        if not is_valid_account_id(network.evm_account_id):
            raise ConfigurationError(f"Invalid evm_account_id: {network.evm_account_id!r}")
        if not network.node_url.startswith(("http://", "https://")):
            raise ConfigurationError(f"node_url must be an http(s) URL: {network.node_url!r}")
        if not 0 < self.rpc.http.port < 65536:
            raise ConfigurationError(f"Invalid port: {self.rpc.http.port}")
        if self.rpc.hydration_timeout <= 0 or self.rpc.upstream_timeout <= 0:
            raise ConfigurationError("Timeouts must be positive")
        return True

    # --- serialisation ----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for diagnostics, NOT for re-creating TOML)."""
        network = self.network
        return {
            "provider": {
                "network": self.provider.network,
                "account_id": self.provider.account_id,
                "node_url": network.node_url,
                "network_id": network.network_id,
                "evm_account_id": network.evm_account_id,
                "key_path": network.key_path,
            },
            "rpc": self.rpc.to_dict(),
        }


# -----------------------------------------------------------------------
# Convenience function
# -----------------------------------------------------------------------

def load_config(path: Optional[str] = None) -> ProviderConfig:
    """
    Load provider configuration.

    Resolution order:
        1. Explicit *path* argument
        2. NEARWEB3_CONFIG env var
        3. ./config.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("NEARWEB3_CONFIG", "config.toml")

    return ProviderConfig.from_file(path)
