"""
nearweb3 RPC Configuration
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class HTTPConfig:
    """HTTP RPC configuration."""

    # Listen address
    host: str = "127.0.0.1"

    # Listen port (the conventional Ethereum JSON-RPC port)
    port: int = 8545

    # Enable CORS
    cors_enabled: bool = True

    # CORS allowed origins
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    # Maximum request body size (bytes)
    max_request_size: int = 5 * 1024 * 1024  # 5MB

    # Maximum number of calls in one batch request
    max_batch_size: int = 100


@dataclass
class ModulesConfig:
    """RPC namespaces to expose."""

    # eth_* namespace
    eth: bool = True

    # net_* namespace
    net: bool = True

    # web3_* namespace
    web3: bool = True

    # near_* namespace (EVM contract deposits and withdrawals)
    near: bool = True


@dataclass
class RPCConfig:
    """RPC configuration."""

    # HTTP configuration
    http: HTTPConfig = field(default_factory=HTTPConfig)

    # Enabled modules
    modules: ModulesConfig = field(default_factory=ModulesConfig)

    # Deadline for hydrating one block with full transactions (seconds)
    hydration_timeout: float = 30.0

    # Deadline for one upstream HTTP call (seconds)
    upstream_timeout: float = 30.0

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "RPCConfig":
        """Create from dictionary."""
        config = dict(config)
        http_dict = config.pop("http", {})
        modules_dict = config.pop("modules", {})

        return cls(
            **config,
            http=HTTPConfig(**http_dict),
            modules=ModulesConfig(**modules_dict),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "http": {
                "host": self.http.host,
                "port": self.http.port,
                "cors_enabled": self.http.cors_enabled,
                "cors_origins": list(self.http.cors_origins),
                "max_request_size": self.http.max_request_size,
                "max_batch_size": self.http.max_batch_size,
            },
            "modules": {
                "eth": self.modules.eth,
                "net": self.modules.net,
                "web3": self.modules.web3,
                "near": self.modules.near,
            },
            "hydration_timeout": self.hydration_timeout,
            "upstream_timeout": self.upstream_timeout,
        }
