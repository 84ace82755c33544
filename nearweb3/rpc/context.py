"""
Shared state handed to every RPC module.
"""

from dataclasses import dataclass

from ..config.loader import NetworkConfig
from ..near.account import Account, InMemoryKeyStore


@dataclass
class ProviderContext:
    """
    Attributes:
        provider: upstream NEAR JSON-RPC client
        account: account used for EVM contract calls
        key_store: registry of local accounts (``eth_accounts``)
        network: selected network preset
        hydration_timeout: deadline for full-block hydration (seconds)
    """
    provider: object
    account: Account
    key_store: InMemoryKeyStore
    network: NetworkConfig
    hydration_timeout: float = 30.0

    @property
    def evm_account_id(self) -> str:
        return self.network.evm_account_id
