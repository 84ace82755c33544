"""
nearweb3

Ethereum JSON-RPC provider backed by the NEAR EVM contract. Translates
eth_*, net_* and web3_* calls into NEAR RPC queries and contract calls and
maps NEAR blocks, chunks and outcomes onto Ethereum-shaped objects.
"""

from .constants import NODE_VERSION

__version__ = NODE_VERSION
