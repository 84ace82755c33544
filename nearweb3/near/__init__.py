"""
nearweb3 NEAR Module

Collaborators on the NEAR side of the translation:
- JSON-RPC client of the upstream node
- Account (view and signed function calls) and the local key store
- Single-flight account provisioning for setup tooling
"""

from .provider import JsonRpcProvider
from .account import Account, FunctionCall, InMemoryKeyStore, Signer
from .provisioning import AccountProvisioner, SingleFlight

__all__ = [
    "JsonRpcProvider",
    "Account",
    "FunctionCall",
    "InMemoryKeyStore",
    "Signer",
    "AccountProvisioner",
    "SingleFlight",
]
