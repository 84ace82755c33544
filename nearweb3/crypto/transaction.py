"""
Legacy signed-transaction decoding.

``raw_call`` actions carry a complete RLP-encoded Ethereum transaction:
the 9-tuple ``[nonce, gasPrice, gasLimit, to, value, data, v, r, s]``.
"""

from dataclasses import dataclass
from typing import List, Optional

import rlp
from rlp.exceptions import DecodingError
from eth_hash.auto import keccak
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError as KeysValidationError
from eth_utils import encode_hex

from ..exceptions import ValidationError

_FIELD_COUNT = 9


def _to_int(value: bytes) -> int:
    return int.from_bytes(value, "big") if value else 0


@dataclass(frozen=True)
class SignedTransaction:
    """A decoded legacy (optionally EIP-155) transaction."""

    nonce: int
    gas_price: int
    gas_limit: int
    to: Optional[bytes]
    value: int
    data: bytes
    v: int
    r: int
    s: int
    fields: tuple = ()

    @property
    def to_hex(self) -> Optional[str]:
        return encode_hex(self.to) if self.to else None

    @property
    def chain_id(self) -> Optional[int]:
        if self.v >= 35:
            return (self.v - 35) // 2
        return None

    def _signing_payload(self) -> List[bytes]:
        unsigned = list(self.fields[:6])
        chain_id = self.chain_id
        if chain_id is not None:
            unsigned += [
                chain_id.to_bytes(max(1, (chain_id.bit_length() + 7) // 8), "big"),
                b"",
                b"",
            ]
        return unsigned

    def sender(self) -> str:
        """
        Recover the signing address from ``(v, r, s)``.

        Raises:
            ValidationError: if the signature does not recover to a key
        """
        chain_id = self.chain_id
        if chain_id is not None:
            recovery_id = self.v - (chain_id * 2 + 35)
        else:
            recovery_id = self.v - 27
        if recovery_id not in (0, 1):
            raise ValidationError(f"Invalid signature v value: {self.v}")

        message_hash = keccak(rlp.encode(self._signing_payload()))
        try:
            signature = keys.Signature(
                signature_bytes=self.r.to_bytes(32, "big")
                + self.s.to_bytes(32, "big")
                + bytes([recovery_id])
            )
            public_key = signature.recover_public_key_from_msg_hash(message_hash)
        except (BadSignature, KeysValidationError, OverflowError) as e:
            raise ValidationError(f"Cannot recover transaction sender: {e}") from e
        return encode_hex(public_key.to_canonical_address())


def decode_signed_transaction(raw: bytes) -> SignedTransaction:
    """
    Decode an RLP list of exactly nine byte strings.

    Raises:
        ValidationError: on malformed RLP, wrong arity or nested items
    """
    try:
        items = rlp.decode(bytes(raw))
    except DecodingError as e:
        raise ValidationError(f"Malformed RLP transaction: {e}") from e

    if not isinstance(items, list) or len(items) != _FIELD_COUNT:
        count = len(items) if isinstance(items, list) else "a non-list"
        raise ValidationError(f"Signed transaction must have {_FIELD_COUNT} fields, got {count}")
    if not all(isinstance(item, bytes) for item in items):
        raise ValidationError("Signed transaction fields must be byte strings")

    to = items[3]
    if to and len(to) != 20:
        raise ValidationError(f"Transaction recipient must be 20 bytes, got {len(to)}")

    return SignedTransaction(
        nonce=_to_int(items[0]),
        gas_price=_to_int(items[1]),
        gas_limit=_to_int(items[2]),
        to=to or None,
        value=_to_int(items[4]),
        data=items[5],
        v=_to_int(items[6]),
        r=_to_int(items[7]),
        s=_to_int(items[8]),
        fields=tuple(items),
    )
