"""
nearweb3 Configuration

Loads config.toml at startup.
Environment variables override TOML values.
"""

from .loader import (
    NETWORKS,
    NetworkConfig,
    ProviderConfig,
    ProviderSectionConfig,
    get_network_config,
    load_config,
)

__all__ = [
    "NETWORKS",
    "NetworkConfig",
    "ProviderConfig",
    "ProviderSectionConfig",
    "get_network_config",
    "load_config",
]
