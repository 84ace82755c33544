"""
Positional parameter validation for RPC handlers.

Every validator either returns the parsed value or raises
``ValidationError`` naming the offending parameter.
"""

from dataclasses import dataclass
from typing import Any, Optional, Union

from ..constants import BLOCK_TAGS, HASH_LENGTH
from ..crypto.address import is_valid_account_id, is_valid_address
from ..crypto.encoding import hex_to_base58, hex_to_bytes, hex_to_int, is_hex, remove_0x
from ..exceptions import ValidationError

BlockRef = Union[str, int]


def require_hex(value: Any, name: str) -> str:
    """A 0x-prefixed hex DATA string (``0x`` alone is allowed)."""
    if not isinstance(value, str) or not value.startswith(("0x", "0X")):
        raise ValidationError(f"{name} must be a 0x-prefixed hex string, got {value!r}")
    if remove_0x(value) and not is_hex(value):
        raise ValidationError(f"{name} is not valid hex: {value!r}")
    if len(value) % 2:
        raise ValidationError(f"{name} must have an even number of hex digits, got {value!r}")
    return "0x" + remove_0x(value).lower()


def require_quantity(value: Any, name: str) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a hex quantity, got {value!r}")
    try:
        return hex_to_int(value)
    except ValidationError:
        raise ValidationError(f"{name} must be a hex quantity, got {value!r}") from None


def require_address(value: Any, name: str) -> str:
    if not is_valid_address(value):
        raise ValidationError(f"{name} must be a 20-byte hex address, got {value!r}")
    return value.lower()


def require_hash(value: Any, name: str) -> str:
    """A 32-byte 0x-hex hash; returned as the base58 form NEAR expects."""
    data = require_hex(value, name)
    if len(hex_to_bytes(data)) != HASH_LENGTH:
        raise ValidationError(f"{name} must be a {HASH_LENGTH}-byte hash, got {value!r}")
    return hex_to_base58(data)


def require_bool(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{name} must be a boolean, got {value!r}")
    return value


def require_account_id(value: Any, name: str) -> str:
    if not isinstance(value, str) or not is_valid_account_id(value.lower()):
        raise ValidationError(f"invalid near accountID: {value!r}")
    return value.lower()


def parse_block_ref(value: Any, name: str = "block") -> BlockRef:
    """A block tag (``latest``, ``earliest``, ...) or a hex block number."""
    if value is None:
        return "latest"
    if isinstance(value, str) and value in BLOCK_TAGS:
        return value
    return require_quantity(value, name)


@dataclass(frozen=True)
class TransactionRequest:
    """The transaction object of ``eth_call`` / ``eth_sendTransaction``."""
    from_: Optional[str] = None
    to: Optional[str] = None
    gas: Optional[int] = None
    gas_price: Optional[int] = None
    value: int = 0
    data: str = "0x"

    @classmethod
    def from_dict(cls, value: Any, name: str = "transaction") -> "TransactionRequest":
        if not isinstance(value, dict):
            raise ValidationError(f"{name} must be an object, got {value!r}")

        def optional(key: str, parse):
            raw = value.get(key)
            return None if raw is None else parse(raw, f"{name}.{key}")

        # "input" is the newer name of "data"
        data = value.get("data", value.get("input"))
        return cls(
            from_=optional("from", require_address),
            to=optional("to", require_address),
            gas=optional("gas", require_quantity),
            gas_price=optional("gasPrice", require_quantity),
            value=optional("value", require_quantity) or 0,
            data=require_hex(data, f"{name}.data") if data is not None else "0x",
        )
