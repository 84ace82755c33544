"""
nearweb3 RPC Module

Ethereum JSON-RPC 2.0 interface of the provider:
- Dispatch table with explicit unsupported methods
- eth_*, net_*, web3_* and near_* namespaces
"""

from .server import RPCServer
from .config import RPCConfig

__all__ = [
    "RPCServer",
    "RPCConfig",
]
