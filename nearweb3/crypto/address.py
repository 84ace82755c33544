"""
NEAR account id validation and the account → EVM address derivation.
"""

from ..constants import (
    ACCOUNT_ID_MAX_LENGTH,
    ACCOUNT_ID_MIN_LENGTH,
    ADDRESS_LENGTH,
    VALID_ACCOUNT_ID_PATTERN,
    VALID_ADDRESS_PATTERN,
)
from ..exceptions import ValidationError
from .hashing import keccak256


def is_valid_account_id(account_id: str) -> bool:
    """Check the NEAR account id grammar and length bounds."""
    if not isinstance(account_id, str):
        return False
    if not ACCOUNT_ID_MIN_LENGTH <= len(account_id) <= ACCOUNT_ID_MAX_LENGTH:
        return False
    return VALID_ACCOUNT_ID_PATTERN.match(account_id) is not None


def is_valid_address(address: str) -> bool:
    return isinstance(address, str) and VALID_ADDRESS_PATTERN.match(address) is not None


def derive_address(account_id: str) -> str:
    """
    Derive the EVM address of a NEAR account.

    The address is the low 20 bytes of ``keccak256(utf8(account_id))``,
    lowercase and 0x-prefixed::

        >>> derive_address("test.near")
        '0xcbda96b3f2b8eb962f97ae50c3852ca976740e2b'

    Raises:
        ValidationError: if ``account_id`` is not a valid NEAR account id
    """
    if not is_valid_account_id(account_id):
        raise ValidationError(f"invalid near accountID: {account_id!r}")
    return "0x" + keccak256(account_id.encode("utf-8"))[-ADDRESS_LENGTH:].hex()
