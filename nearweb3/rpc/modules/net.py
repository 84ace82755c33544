"""
nearweb3 net_* RPC Methods
"""

from ..server import RPCModule, rpc_method
from ...exceptions import UpstreamError
from ...logger import get_logger

logger = get_logger(__name__)


class NetModule(RPCModule):
    """
    Network RPC methods (net_* namespace).
    """

    namespace = "net"

    @rpc_method
    async def version(self) -> str:
        """
        Returns the network ID of the selected NEAR network.

        Returns:
            Network ID string
        """
        return self.context.network.net_version

    @rpc_method
    async def listening(self) -> bool:
        """
        Returns whether the upstream NEAR node answers a status query.
        """
        try:
            status = await self.context.provider.status()
        except UpstreamError as e:
            logger.debug(f"net_listening: upstream unavailable: {e.message}")
            return False
        return bool(status)
