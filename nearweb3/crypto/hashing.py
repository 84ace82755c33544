"""
nearweb3 Crypto Hashing Module

Provides the hash functions used by the codec:
- keccak256: Ethereum standard, used for account → address derivation
  and ``web3_sha3``
"""

from typing import Union

from eth_hash.auto import keccak as _eth_keccak

from .encoding import hex_to_bytes


def _as_bytes(data: Union[bytes, str]) -> bytes:
    if isinstance(data, str):
        return hex_to_bytes(data)
    return data


def keccak256(data: Union[bytes, str]) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum standard).

    Args:
        data: Input bytes or hex string

    Returns:
        32-byte hash
    """
    return _eth_keccak(_as_bytes(data))


def keccak256_hex(data: Union[bytes, str]) -> str:
    """Compute Keccak-256 hash and return it 0x-prefixed."""
    return '0x' + keccak256(data).hex()
