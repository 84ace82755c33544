"""
nearweb3 web3_* RPC Methods

Utility JSON-RPC methods.
"""

from ..params import require_hex
from ..server import RPCModule, rpc_method
from ...constants import CLIENT_NAME, NODE_VERSION
from ...crypto.encoding import hex_to_bytes
from ...crypto.hashing import keccak256_hex


class Web3Module(RPCModule):
    """
    Web3 utility methods (web3_* namespace).
    """

    namespace = "web3"

    @rpc_method
    async def clientVersion(self) -> str:
        return f"{CLIENT_NAME}/{NODE_VERSION}/python"

    @rpc_method
    async def sha3(self, data: str) -> str:
        """
        Returns Keccak-256 hash of input.

        Args:
            data: Input data (hex string with 0x prefix)

        Returns:
            Hash (hex with 0x prefix)
        """
        return keccak256_hex(hex_to_bytes(require_hex(data, "data")))
