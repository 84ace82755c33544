"""
nearweb3 RPC Modules

Ethereum JSON-RPC method implementations on top of NEAR.
"""

from .eth import EthModule
from .net import NetModule
from .web3 import Web3Module
from .near import NearModule

__all__ = [
    "EthModule",
    "NetModule",
    "Web3Module",
    "NearModule",
]
