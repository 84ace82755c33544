"""
Tests for legacy signed-transaction decoding and sender recovery.

Vector: the EIP-155 example transaction (chain id 1).
"""

import pytest
import rlp

from nearweb3.crypto.encoding import hex_to_bytes
from nearweb3.crypto.transaction import decode_signed_transaction
from nearweb3.exceptions import ValidationError

EIP155_RAW = (
    "0xf86c098504a817c800825208943535353535353535353535353535353535353535880de0b6b3a7"
    "6400008025a028ef61340bd939bc2195fe537567866003e1a15d3c71ff63e1590620aa636276a067"
    "cbe9d8997f761aecb703304b3800ccf555c9f3dc64214b297fb1966a3b6d83"
)
EIP155_SENDER = "0x9d8a62f656a8d1615c1294fd71e9cfb3e4855a4f"


class TestDecodeSignedTransaction:

    def test_fields(self):
        tx = decode_signed_transaction(hex_to_bytes(EIP155_RAW))
        assert tx.nonce == 9
        assert tx.gas_price == 20_000_000_000
        assert tx.gas_limit == 21000
        assert tx.to_hex == "0x" + "35" * 20
        assert tx.value == 10 ** 18
        assert tx.data == b""
        assert tx.v == 37

    def test_chain_id(self):
        tx = decode_signed_transaction(hex_to_bytes(EIP155_RAW))
        assert tx.chain_id == 1

    def test_sender_recovery(self):
        tx = decode_signed_transaction(hex_to_bytes(EIP155_RAW))
        assert tx.sender() == EIP155_SENDER

    def test_contract_creation_has_no_recipient(self):
        items = [b"\x01", b"\x01", b"\x52\x08", b"", b"", b"\x60\x00", b"\x1b", b"\x01", b"\x01"]
        tx = decode_signed_transaction(rlp.encode(items))
        assert tx.to is None
        assert tx.to_hex is None
        assert tx.chain_id is None

    def test_wrong_arity(self):
        with pytest.raises(ValidationError, match="9 fields"):
            decode_signed_transaction(rlp.encode([b"\x01"] * 8))

    def test_nested_item_rejected(self):
        items = [b"\x01"] * 8 + [[b"\x01"]]
        with pytest.raises(ValidationError):
            decode_signed_transaction(rlp.encode(items))

    def test_bad_recipient_length(self):
        items = [b"", b"", b"", b"\x01" * 19, b"", b"", b"\x1b", b"\x01", b"\x01"]
        with pytest.raises(ValidationError, match="20 bytes"):
            decode_signed_transaction(rlp.encode(items))

    def test_malformed_rlp(self):
        with pytest.raises(ValidationError, match="Malformed"):
            decode_signed_transaction(b"\xf8")

    def test_invalid_v(self):
        items = [b"", b"", b"", b"", b"", b"", b"\x05", b"\x01", b"\x01"]
        tx = decode_signed_transaction(rlp.encode(items))
        with pytest.raises(ValidationError, match="v value"):
            tx.sender()
