"""
Tests for the nearweb3 codec: hex / base58 / base64 conversions, EVM
contract argument layouts, composite transaction hashes and the account
to address derivation.
"""

import base58
import pytest

from nearweb3.constants import VALID_ADDRESS_PATTERN
from nearweb3.crypto.address import derive_address, is_valid_account_id
from nearweb3.crypto.encoding import (
    base58_to_hex,
    base64_to_hex,
    convert_timestamp,
    decode_call_args,
    decode_transfer_args,
    decode_withdraw_args,
    deserialize_fixed_bytes,
    encode_call_args,
    encode_storage_args,
    encode_transfer_args,
    encode_withdraw_args,
    format_composite_hash,
    hex_to_base58,
    hex_to_bytes,
    hex_to_int,
    include_0x,
    int_to_hex,
    is_hex,
    parse_composite_hash,
    remove_0x,
)
from nearweb3.crypto.hashing import keccak256_hex
from nearweb3.exceptions import ValidationError


# ============================================================================
# Hex helpers
# ============================================================================

class TestHexHelpers:

    def test_prefix_idempotent(self):
        assert include_0x("abcd") == "0xabcd"
        assert include_0x(include_0x("abcd")) == "0xabcd"
        assert remove_0x(remove_0x("0xabcd")) == "abcd"

    def test_uppercase_prefix(self):
        assert remove_0x("0XAB") == "AB"

    def test_is_hex(self):
        assert is_hex("0xdeadBEEF")
        assert is_hex("00ff")
        assert not is_hex("0x")
        assert not is_hex("0xzz")
        assert not is_hex("test.near")

    def test_hex_to_bytes_rejects_odd_length(self):
        with pytest.raises(ValidationError, match="even number"):
            hex_to_bytes("0x1")
        with pytest.raises(ValidationError):
            hex_to_base58("0xabc")

    def test_hex_to_bytes_empty(self):
        assert hex_to_bytes("0x") == b""

    def test_hex_to_bytes_rejects_garbage(self):
        with pytest.raises(ValidationError):
            hex_to_bytes("0xnothex")

    def test_is_hex_rejects_non_string(self):
        with pytest.raises(ValidationError):
            is_hex(12)


# ============================================================================
# Quantities
# ============================================================================

class TestQuantity:

    def test_zero(self):
        assert int_to_hex(0) == "0x0"

    def test_minimal_encoding(self):
        assert int_to_hex(255) == "0xff"
        assert int_to_hex(256) == "0x100"

    def test_negative_rejected(self):
        with pytest.raises(ValidationError):
            int_to_hex(-1)

    def test_bool_rejected(self):
        with pytest.raises(ValidationError):
            int_to_hex(True)

    def test_hex_to_int(self):
        assert hex_to_int("0x10") == 16
        with pytest.raises(ValidationError):
            hex_to_int("0x")


# ============================================================================
# base58 / base64
# ============================================================================

class TestBase58:

    def test_byte_preserving(self):
        value = "0x" + "ab" * 32
        assert base58_to_hex(hex_to_base58(value)) == value

    def test_leading_zero_bytes_survive(self):
        value = "0x0000ff"
        assert base58_to_hex(hex_to_base58(value)) == value

    def test_known_value(self):
        assert hex_to_base58("0x" + "00" * 32) == "1" * 32

    def test_empty_bytes(self):
        assert hex_to_base58("0x") == ""
        assert base58_to_hex(hex_to_base58("0x")) == "0x"

    def test_invalid_base58(self):
        with pytest.raises(ValidationError):
            base58_to_hex("0OIl")

    def test_base64(self):
        assert base64_to_hex("AQID") == "0x010203"
        with pytest.raises(ValidationError):
            base64_to_hex("not base64!")


# ============================================================================
# Fixed-width bytes and contract arguments
# ============================================================================

class TestContractArgs:

    ADDRESS = "0x" + "11" * 20

    def test_fixed_bytes_left_pads(self):
        assert deserialize_fixed_bytes("0x0102", 4) == b"\x00\x00\x01\x02"

    def test_fixed_bytes_too_long(self):
        with pytest.raises(ValidationError):
            deserialize_fixed_bytes("0x" + "ff" * 21, 20)

    def test_storage_args_layout(self):
        args = encode_storage_args(self.ADDRESS, "0x01")
        assert len(args) == 52
        assert args[:20] == b"\x11" * 20
        assert args[20:] == b"\x00" * 31 + b"\x01"

    def test_call_args_layout(self):
        args = encode_call_args(self.ADDRESS, "0xa9059cbb")
        assert args[:20] == b"\x11" * 20
        assert args[20:24] == (4).to_bytes(4, "little")
        assert args[24:] == bytes.fromhex("a9059cbb")
        assert decode_call_args(args) == (self.ADDRESS, "0xa9059cbb")

    def test_call_args_trailing_bytes(self):
        with pytest.raises(ValidationError):
            decode_call_args(encode_call_args(self.ADDRESS, "0x01") + b"\x00")

    def test_call_args_truncated(self):
        with pytest.raises(ValidationError):
            decode_call_args(encode_call_args(self.ADDRESS, "0x0102")[:-1])

    def test_transfer_args(self):
        args = encode_transfer_args(self.ADDRESS, 10 ** 18)
        assert len(args) == 52
        assert args[20:] == (10 ** 18).to_bytes(32, "big")
        assert decode_transfer_args(args) == (self.ADDRESS, 10 ** 18)

    def test_transfer_args_wrong_length(self):
        with pytest.raises(ValidationError):
            decode_transfer_args(b"\x00" * 51)

    def test_amount_overflow(self):
        with pytest.raises(ValidationError):
            encode_transfer_args(self.ADDRESS, 2 ** 256)

    def test_withdraw_args(self):
        args = encode_withdraw_args("alice.near", 5)
        assert args[:4] == (10).to_bytes(4, "little")
        assert args[4:14] == b"alice.near"
        assert decode_withdraw_args(args) == ("alice.near", 5)


# ============================================================================
# Timestamps
# ============================================================================

class TestTimestamp:

    def test_nanoseconds_to_milliseconds(self):
        assert convert_timestamp(1_595_000_000_123_456_789) == int_to_hex(1_595_000_000_123)

    def test_sub_millisecond_truncated(self):
        assert convert_timestamp(999_999) == "0x0"

    def test_digit_string(self):
        assert convert_timestamp("2000000") == "0x2"

    def test_rejects_other_types(self):
        with pytest.raises(ValidationError):
            convert_timestamp("12.5")


# ============================================================================
# Composite hashes
# ============================================================================

class TestCompositeHash:

    NATIVE = base58.b58encode(bytes(range(32))).decode()

    def test_format(self):
        value = format_composite_hash(self.NATIVE, "alice.near")
        assert value == "0x" + bytes(range(32)).hex() + ":alice.near"

    def test_parse(self):
        value = format_composite_hash(self.NATIVE, "alice.near")
        assert parse_composite_hash(value) == (self.NATIVE, "alice.near")

    def test_missing_separator(self):
        with pytest.raises(ValidationError, match="separated by ':'"):
            parse_composite_hash("0x" + "ab" * 32)

    def test_missing_account(self):
        with pytest.raises(ValidationError):
            parse_composite_hash("0x" + "ab" * 32 + ":")


# ============================================================================
# Address derivation
# ============================================================================

class TestDeriveAddress:

    def test_golden_value(self):
        assert derive_address("test.near") == "0xcbda96b3f2b8eb962f97ae50c3852ca976740e2b"

    def test_low_twenty_bytes_of_keccak(self):
        digest = keccak256_hex(b"alice.near")
        assert derive_address("alice.near") == "0x" + digest[-40:]

    def test_keccak_of_hex_string(self):
        assert keccak256_hex("0x616c6963652e6e656172") == keccak256_hex(b"alice.near")
        with pytest.raises(ValidationError):
            keccak256_hex("0xabc")

    def test_format(self):
        for account_id in ("evm", "test.near", "a-b_c.testnet", "0123456789abcdef" * 4):
            assert VALID_ADDRESS_PATTERN.match(derive_address(account_id))

    def test_deterministic(self):
        assert derive_address("bob.near") == derive_address("bob.near")

    @pytest.mark.parametrize("account_id", ["", "a", "Alice.near", "bad..near", "x" * 65, "-a.near"])
    def test_invalid_account_id(self, account_id):
        assert not is_valid_account_id(account_id)
        with pytest.raises(ValidationError, match="invalid near accountID"):
            derive_address(account_id)
