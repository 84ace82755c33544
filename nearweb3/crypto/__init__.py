"""
nearweb3 Crypto Module

Byte-level conversions between NEAR and Ethereum:
- Hash functions (keccak256)
- hex / base58 / base64 and QUANTITY encoding
- EVM contract argument layouts (call, transfer, withdraw)
- Legacy RLP transaction decoding and sender recovery
- Account id → EVM address derivation
"""

from .hashing import keccak256, keccak256_hex
from .address import derive_address, is_valid_account_id, is_valid_address
from .encoding import (
    remove_0x,
    include_0x,
    is_hex,
    hex_to_bytes,
    bytes_to_hex,
    int_to_hex,
    hex_to_int,
    hex_to_base58,
    base58_to_hex,
    base58_to_bytes,
    base64_to_hex,
    base64_to_bytes,
    deserialize_fixed_bytes,
    encode_address_args,
    encode_storage_args,
    encode_call_args,
    decode_call_args,
    encode_transfer_args,
    decode_transfer_args,
    encode_withdraw_args,
    decode_withdraw_args,
    convert_timestamp,
    format_composite_hash,
    parse_composite_hash,
)
from .transaction import SignedTransaction, decode_signed_transaction

__all__ = [
    'keccak256', 'keccak256_hex',
    'derive_address', 'is_valid_account_id', 'is_valid_address',
    'remove_0x', 'include_0x', 'is_hex', 'hex_to_bytes', 'bytes_to_hex',
    'int_to_hex', 'hex_to_int', 'hex_to_base58', 'base58_to_hex', 'base58_to_bytes',
    'base64_to_hex', 'base64_to_bytes', 'deserialize_fixed_bytes',
    'encode_address_args', 'encode_storage_args',
    'encode_call_args', 'decode_call_args',
    'encode_transfer_args', 'decode_transfer_args',
    'encode_withdraw_args', 'decode_withdraw_args',
    'convert_timestamp', 'format_composite_hash', 'parse_composite_hash',
    'SignedTransaction', 'decode_signed_transaction',
]
