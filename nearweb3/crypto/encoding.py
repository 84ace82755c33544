"""
nearweb3 Encoding Module

Conversions between NEAR and Ethereum representations:
- hex / base58 / base64 byte strings
- Ethereum QUANTITY values
- the fixed-layout argument bytes consumed by the NEAR EVM contract
- composite transaction hashes and NEAR timestamps

Every function is pure. Malformed input raises ``ValidationError``.
"""

import base64
import binascii
from typing import Optional, Tuple, Union

import base58
from eth_utils import decode_hex, encode_hex

from ..constants import (
    ADDRESS_LENGTH,
    AMOUNT_LENGTH,
    LENGTH_PREFIX_SIZE,
    TIMESTAMP_DIVISOR,
    VALID_HEX_PATTERN,
)
from ..exceptions import ValidationError

HexOrBytes = Union[str, bytes]


# ─── Hex ──────────────────────────────────────────────────────────────────────

def remove_0x(value: str) -> str:
    """Remove the 0x prefix if present."""
    if not isinstance(value, str):
        raise ValidationError(f"remove_0x: expected a string, got {type(value).__name__}")
    if value[:2] in ("0x", "0X"):
        return value[2:]
    return value


def include_0x(value: str) -> str:
    """Add the 0x prefix if missing."""
    return "0x" + remove_0x(value)


def is_hex(value: str) -> bool:
    """True for a non-empty hex string with an optional 0x prefix."""
    if not isinstance(value, str):
        raise ValidationError(f"is_hex: expected a string, got {type(value).__name__}")
    return bool(remove_0x(value)) and VALID_HEX_PATTERN.match(value) is not None


def hex_to_bytes(value: str) -> bytes:
    """Decode a hex DATA string (``0x`` alone decodes to empty bytes)."""
    if not isinstance(value, str) or VALID_HEX_PATTERN.match(value) is None:
        raise ValidationError(f"Invalid hex string: {value!r}")
    digits = remove_0x(value)
    if len(digits) % 2:
        raise ValidationError(f"Hex DATA must have an even number of digits: {value!r}")
    return decode_hex(digits)


def bytes_to_hex(value: bytes) -> str:
    return encode_hex(value)


def _as_bytes(value: HexOrBytes) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return hex_to_bytes(value)


# ─── QUANTITY ─────────────────────────────────────────────────────────────────

def int_to_hex(value: int) -> str:
    """Integer → QUANTITY (minimal lowercase hex, ``0x0`` for zero)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"Expected an integer quantity, got {value!r}")
    if value < 0:
        raise ValidationError(f"Quantity must be non-negative, got {value}")
    return hex(value)


def hex_to_int(value: str) -> int:
    """QUANTITY → integer."""
    if not isinstance(value, str) or not is_hex(value):
        raise ValidationError(f"Invalid hex quantity: {value!r}")
    return int(remove_0x(value), 16)


# ─── base58 / base64 ──────────────────────────────────────────────────────────

def hex_to_base58(value: str) -> str:
    """Hex string → base58 string; byte-preserving."""
    return base58.b58encode(hex_to_bytes(value)).decode("ascii")


def base58_to_bytes(value: str) -> bytes:
    """base58 string → bytes; the empty string decodes to empty bytes."""
    if not isinstance(value, str):
        raise ValidationError(f"Invalid base58 string: {value!r}")
    try:
        return base58.b58decode(value)
    except ValueError as e:
        raise ValidationError(f"Invalid base58 string: {value!r}") from e


def base58_to_hex(value: str) -> str:
    """base58 string → 0x-prefixed hex; byte-preserving."""
    return encode_hex(base58_to_bytes(value))


def base64_to_bytes(value: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"Invalid base64 string: {value!r}") from e


def base64_to_hex(value: str) -> str:
    return encode_hex(base64_to_bytes(value))


# ─── Fixed-width bytes ────────────────────────────────────────────────────────

def deserialize_fixed_bytes(value: HexOrBytes, fixed_len: Optional[int] = None) -> bytes:
    """
    Decode a hex string into bytes, left-padding with zeros to ``fixed_len``.

    Raises:
        ValidationError: if the decoded value is longer than ``fixed_len``
    """
    raw = _as_bytes(value)
    if fixed_len is None:
        return raw
    if len(raw) > fixed_len:
        raise ValidationError(
            f"Value of {len(raw)} bytes does not fit in {fixed_len} bytes"
        )
    return raw.rjust(fixed_len, b"\x00")


def _u256(amount: int) -> bytes:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise ValidationError(f"Invalid amount: {amount!r}")
    if amount.bit_length() > AMOUNT_LENGTH * 8:
        raise ValidationError(f"Amount does not fit in {AMOUNT_LENGTH} bytes: {amount}")
    return amount.to_bytes(AMOUNT_LENGTH, "big")


def _read_length_prefixed(args: bytes, offset: int) -> Tuple[bytes, int]:
    end = offset + LENGTH_PREFIX_SIZE
    if len(args) < end:
        raise ValidationError("Arguments truncated before length prefix")
    length = int.from_bytes(args[offset:end], "little")
    if len(args) < end + length:
        raise ValidationError(
            f"Length prefix declares {length} bytes, only {len(args) - end} present"
        )
    return args[end:end + length], end + length


# ─── EVM contract arguments ───────────────────────────────────────────────────

def encode_address_args(address: HexOrBytes) -> bytes:
    """Arguments of ``get_balance`` / ``get_nonce`` / ``code_at``: the bare address."""
    return deserialize_fixed_bytes(address, ADDRESS_LENGTH)


def encode_storage_args(address: HexOrBytes, key: HexOrBytes) -> bytes:
    """Arguments of ``get_storage_at``: ``address(20) || key(32)``."""
    return deserialize_fixed_bytes(address, ADDRESS_LENGTH) + deserialize_fixed_bytes(key, 32)


def encode_call_args(address: HexOrBytes, data: HexOrBytes) -> bytes:
    """``address(20) || u32-le(len(data)) || data``"""
    payload = _as_bytes(data)
    return (
        deserialize_fixed_bytes(address, ADDRESS_LENGTH)
        + len(payload).to_bytes(LENGTH_PREFIX_SIZE, "little")
        + payload
    )


def decode_call_args(args: bytes) -> Tuple[str, str]:
    """Inverse of :func:`encode_call_args` → (contract address, input data) as hex."""
    if len(args) < ADDRESS_LENGTH:
        raise ValidationError(f"Call arguments too short: {len(args)} bytes")
    payload, end = _read_length_prefixed(args, ADDRESS_LENGTH)
    if end != len(args):
        raise ValidationError(f"{len(args) - end} trailing bytes after call input")
    return encode_hex(args[:ADDRESS_LENGTH]), encode_hex(payload)


def encode_transfer_args(address: HexOrBytes, amount: int) -> bytes:
    """``address(20) || amount(32, big-endian)``"""
    return deserialize_fixed_bytes(address, ADDRESS_LENGTH) + _u256(amount)


def decode_transfer_args(args: bytes) -> Tuple[str, int]:
    """Inverse of :func:`encode_transfer_args` → (address hex, amount)."""
    expected = ADDRESS_LENGTH + AMOUNT_LENGTH
    if len(args) != expected:
        raise ValidationError(f"Transfer arguments must be {expected} bytes, got {len(args)}")
    return (
        encode_hex(args[:ADDRESS_LENGTH]),
        int.from_bytes(args[ADDRESS_LENGTH:expected], "big"),
    )


def encode_withdraw_args(account_id: str, amount: int) -> bytes:
    """``u32-le(len(account_id)) || account_id || amount(32, big-endian)``"""
    raw = account_id.encode("utf-8")
    return len(raw).to_bytes(LENGTH_PREFIX_SIZE, "little") + raw + _u256(amount)


def decode_withdraw_args(args: bytes) -> Tuple[str, int]:
    """Inverse of :func:`encode_withdraw_args` → (account id, amount)."""
    raw, end = _read_length_prefixed(args, 0)
    if len(args) - end != AMOUNT_LENGTH:
        raise ValidationError(f"Withdraw amount must be {AMOUNT_LENGTH} bytes")
    try:
        account_id = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ValidationError("Withdraw account id is not valid UTF-8") from e
    return account_id, int.from_bytes(args[end:], "big")


# ─── Timestamps ───────────────────────────────────────────────────────────────

def convert_timestamp(nanoseconds: Union[int, str]) -> str:
    """
    NEAR timestamp (nanoseconds) → QUANTITY in milliseconds.

    The value is integer-divided by 1,000,000 before anything else touches
    it, so sub-millisecond precision is dropped deterministically. Clients
    need this: the raw nanosecond count does not fit the 53-bit integers
    JavaScript tooling parses timestamps into.
    """
    if isinstance(nanoseconds, str) and nanoseconds.isdigit():
        nanoseconds = int(nanoseconds)
    if isinstance(nanoseconds, bool) or not isinstance(nanoseconds, int):
        raise ValidationError(f"Invalid timestamp: {nanoseconds!r}")
    return int_to_hex(nanoseconds // TIMESTAMP_DIVISOR)


# ─── Composite transaction hashes ─────────────────────────────────────────────

def format_composite_hash(native_hash: str, account_id: str) -> str:
    """base58 NEAR tx hash + signer → ``"0x<hex hash>:<account>"``."""
    return f"{base58_to_hex(native_hash)}:{account_id}"


def parse_composite_hash(value: str) -> Tuple[str, str]:
    """
    ``"0x<hex hash>:<account>"`` → (base58 tx hash, account id).

    NEAR transaction hashes are only unique per signer, so the account is
    required for every outcome lookup.
    """
    if not isinstance(value, str) or ":" not in value:
        raise ValidationError(
            f"Must pass in hash and accountId separated by ':' <txHash:accountId>, got {value!r}"
        )
    tx_hash, account_id = value.split(":", 1)
    if not account_id:
        raise ValidationError(f"Missing account id in transaction hash {value!r}")
    if not is_hex(tx_hash):
        raise ValidationError(f"Transaction hash is not hex: {tx_hash!r}")
    return hex_to_base58(tx_hash), account_id
