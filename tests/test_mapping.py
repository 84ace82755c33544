"""
Tests for the object mapper: NEAR blocks, transactions and outcomes
rendered as Ethereum blocks, transactions, receipts and logs.
"""

import base64
import json

import base58
import pytest

from nearweb3.crypto.address import derive_address
from nearweb3.crypto.encoding import (
    encode_call_args,
    encode_transfer_args,
    encode_withdraw_args,
    format_composite_hash,
    hex_to_bytes,
)
from nearweb3.exceptions import MappingError
from nearweb3.mapping import (
    block_gas_limit,
    block_gas_used,
    map_block,
    map_receipt,
    map_sync_status,
    map_transaction,
    parse_log,
    split_log,
    sum_deposits,
)
from nearweb3.types import (
    Action,
    BlockHeader,
    ChunkHeader,
    EthBlock,
    ExecutionStatus,
    HydratedBlock,
    HydratedTransaction,
    NearBlock,
    NearTransaction,
    ReceiptOutcome,
    SyncInfo,
    TransactionOutcome,
)

EIP155_RAW = (
    "0xf86c098504a817c800825208943535353535353535353535353535353535353535880de0b6b3a7"
    "6400008025a028ef61340bd939bc2195fe537567866003e1a15d3c71ff63e1590620aa636276a067"
    "cbe9d8997f761aecb703304b3800ccf555c9f3dc64214b297fb1966a3b6d83"
)
EIP155_SENDER = "0x9d8a62f656a8d1615c1294fd71e9cfb3e4855a4f"


# ============================================================================
# Fixtures & Helpers
# ============================================================================

def _b58(n: int) -> str:
    return base58.b58encode(bytes([n]) * 32).decode()


def _hex(n: int) -> str:
    return "0x" + bytes([n]).hex() * 32


TOPIC_A = "aa" * 32
TOPIC_B = "bb" * 32
CONTRACT = "0x" + "42" * 20


def _chunk(n: int, gas_used: int, gas_limit: int) -> ChunkHeader:
    return ChunkHeader(chunk_hash=_b58(100 + n), gas_used=gas_used, gas_limit=gas_limit, tx_root=_b58(200 + n))


def _block(chunks=()) -> NearBlock:
    header = BlockHeader(
        height=1234,
        hash=_b58(1),
        prev_hash=_b58(2),
        timestamp=1_600_000_000_123_456_789,
        gas_price=100_000_000,
        chunks_included=len(chunks),
    )
    return NearBlock(header=header, chunks=tuple(chunks))


def _function_call(method_name: str, args: bytes = b"", deposit: int = 0, gas: int = 30) -> Action:
    return Action(kind="FunctionCall", method_name=method_name, args=args, gas=gas, deposit=deposit)


def _tx(*actions, signer_id="alice.near", receiver_id="evm", n=9) -> NearTransaction:
    return NearTransaction(
        hash=_b58(n),
        signer_id=signer_id,
        receiver_id=receiver_id,
        nonce=5,
        actions=tuple(actions),
        block_hash=_b58(1),
        block_height=1234,
        gas_price=100_000_000,
    )


def _outcome(
    success_value=None, failure=None, logs=(), gas_burnt=2_428_000_000, executor_id="evm"
) -> TransactionOutcome:
    return TransactionOutcome(
        block_hash=_b58(1),
        gas_burnt=gas_burnt,
        status=ExecutionStatus(success_value=success_value, failure=failure),
        receipts_outcome=(
            ReceiptOutcome(id=_b58(50), logs=tuple(logs), gas_burnt=gas_burnt, executor_id=executor_id),
        ),
    )


# ============================================================================
# Blocks
# ============================================================================

class TestBlockGas:

    def test_gas_used_is_sum(self):
        chunks = [_chunk(0, 10, 100), _chunk(1, 20, 300), _chunk(2, 30, 200)]
        assert block_gas_used(chunks) == 60

    def test_gas_limit_is_max(self):
        chunks = [_chunk(0, 10, 100), _chunk(1, 20, 300), _chunk(2, 30, 200)]
        assert block_gas_limit(chunks) == 300

    def test_empty_block_raises(self):
        with pytest.raises(MappingError):
            block_gas_used([])
        with pytest.raises(MappingError):
            block_gas_limit([])


class TestMapBlock:

    def test_header_fields(self):
        block = _block([_chunk(0, 10, 100), _chunk(1, 20, 300)])
        eth = map_block(HydratedBlock(block=block))
        assert eth.number == "0x4d2"
        assert eth.hash == _hex(1)
        assert eth.parent_hash == _hex(2)
        assert eth.gas_used == "0x1e"
        assert eth.gas_limit == "0x12c"
        assert eth.timestamp == hex(1_600_000_000_123)
        assert eth.transactions == ()

    def test_transaction_hashes(self):
        tx = _tx(_function_call("deposit"))
        block = _block([_chunk(0, 10, 100)])
        eth = map_block(HydratedBlock(block=block, transactions=(HydratedTransaction(tx),)))
        assert eth.transactions == (format_composite_hash(tx.hash, "alice.near"),)

    def test_full_transactions(self):
        tx = _tx(_function_call("deposit", deposit=3))
        block = _block([_chunk(0, 10, 100)])
        hydrated = HydratedBlock(block=block, transactions=(HydratedTransaction(tx, _outcome()),))
        eth = map_block(hydrated, include_full_tx=True)
        assert eth.transactions[0].hash == format_composite_hash(tx.hash, "alice.near")
        assert eth.transactions[0].transaction_index == "0x0"

    def test_block_mixing_evm_and_other_contracts(self):
        token_args = json.dumps({"receiver_id": "bob.near", "amount": "1"}).encode()
        token_tx = _tx(_function_call("transfer", token_args, deposit=1), receiver_id="token.near", n=8)
        evm_tx = _tx(_function_call("call", encode_call_args(CONTRACT, "0x01")))
        block = _block([_chunk(0, 10, 100)])
        hydrated = HydratedBlock(block=block, transactions=(
            HydratedTransaction(token_tx, _outcome(executor_id="token.near")),
            HydratedTransaction(evm_tx, _outcome()),
        ))
        eth = map_block(hydrated, include_full_tx=True)
        assert eth.transactions[0].to == derive_address("token.near")
        assert eth.transactions[0].value == "0x1"
        assert eth.transactions[1].to == CONTRACT

    def test_chunkless_block_raises(self):
        with pytest.raises(MappingError):
            map_block(HydratedBlock(block=_block()))

    def test_json_shape(self):
        block = _block([_chunk(0, 10, 100)])
        data = map_block(HydratedBlock(block=block)).to_dict()
        assert data["parentHash"] == _hex(2)
        assert data["gasUsed"] == "0xa"
        assert "sha3Uncles" in data
        assert data["uncles"] == []

    def test_empty_placeholder(self):
        data = EthBlock.empty().to_dict()
        assert data["number"] is None
        assert data["hash"] is None
        assert data["gasUsed"] == "0x0"
        assert data["transactions"] == []


# ============================================================================
# Transactions
# ============================================================================

class TestMapTransaction:

    def test_no_actions_raises(self):
        with pytest.raises(MappingError):
            sum_deposits([])
        with pytest.raises(MappingError):
            map_transaction(HydratedTransaction(_tx()), 0)

    def test_call(self):
        args = encode_call_args(CONTRACT, "0xa9059cbb")
        tx = _tx(_function_call("call", args, deposit=7))
        eth = map_transaction(HydratedTransaction(tx, _outcome()), 2)
        assert eth.to == CONTRACT
        assert eth.input == "0xa9059cbb"
        assert eth.value == "0x7"
        assert eth.from_ == derive_address("alice.near")
        assert eth.transaction_index == "0x2"
        assert eth.nonce == "0x5"
        assert eth.gas == hex(2_428_000_000)
        assert eth.block_number == "0x4d2"
        assert eth.block_hash == _hex(1)

    def test_gas_without_outcome(self):
        tx = _tx(_function_call("deposit", gas=10), _function_call("deposit", gas=20))
        eth = map_transaction(HydratedTransaction(tx), 0)
        assert eth.gas == "0x1e"

    def test_deposit(self):
        tx = _tx(_function_call("deposit", deposit=10 ** 24))
        eth = map_transaction(HydratedTransaction(tx), 0)
        assert eth.to == derive_address("alice.near")
        assert eth.value == hex(10 ** 24)

    def test_transfer(self):
        args = encode_transfer_args(CONTRACT, 12345)
        tx = _tx(_function_call("transfer", args))
        eth = map_transaction(HydratedTransaction(tx), 0)
        assert eth.to == CONTRACT
        assert eth.value == hex(12345)
        assert eth.input == "0x"

    def test_withdraw(self):
        tx = _tx(_function_call("withdraw", encode_withdraw_args("bob.near", 9)))
        eth = map_transaction(HydratedTransaction(tx), 0)
        assert eth.to == derive_address("bob.near")
        assert eth.value == "0x9"

    def test_deploy_code(self):
        tx = _tx(_function_call("deploy_code", b"\x60\x80"))
        eth = map_transaction(HydratedTransaction(tx), 0)
        assert eth.to is None
        assert eth.input == "0x6080"

    def test_raw_call(self):
        tx = _tx(_function_call("raw_call", hex_to_bytes(EIP155_RAW)))
        eth = map_transaction(HydratedTransaction(tx), 0)
        assert eth.from_ == EIP155_SENDER
        assert eth.to == "0x" + "35" * 20
        assert eth.value == hex(10 ** 18)

    def test_plain_transfer_action(self):
        tx = _tx(Action(kind="Transfer", deposit=4), receiver_id="bob.near")
        eth = map_transaction(HydratedTransaction(tx), 0)
        assert eth.to == derive_address("bob.near")
        assert eth.value == "0x4"

    def test_evm_method_names_on_other_contracts(self):
        for method in ("call", "transfer", "deposit", "withdraw", "deploy_code", "raw_call"):
            tx = _tx(_function_call(method, b'{"amount": "5"}', deposit=2), receiver_id="pool.near")
            eth = map_transaction(HydratedTransaction(tx), 0)
            assert eth.to == derive_address("pool.near")
            assert eth.value == "0x2"
            assert eth.input == "0x"

    def test_custom_evm_account(self):
        args = encode_transfer_args(CONTRACT, 12345)
        tx = _tx(_function_call("transfer", args), receiver_id="evm.test.near")
        eth = map_transaction(HydratedTransaction(tx), 0, evm_account_id="evm.test.near")
        assert eth.to == CONTRACT
        assert eth.value == hex(12345)

    def test_malformed_arguments(self):
        tx = _tx(_function_call("transfer", b"\x00" * 10))
        with pytest.raises(MappingError, match="transfer"):
            map_transaction(HydratedTransaction(tx), 0)

    def test_json_uses_from_key(self):
        tx = _tx(_function_call("deposit"))
        data = map_transaction(HydratedTransaction(tx), 0).to_dict()
        assert data["from"] == derive_address("alice.near")
        assert data["transactionIndex"] == "0x0"
        assert "from_" not in data


# ============================================================================
# Logs
# ============================================================================

class TestLogs:

    def test_two_topics(self):
        topics, data = split_log("02" + TOPIC_A + TOPIC_B + "deadbeef")
        assert topics == ["0x" + TOPIC_A, "0x" + TOPIC_B]
        assert data == "0xdeadbeef"

    def test_no_topics(self):
        assert split_log("00cafe") == ([], "0xcafe")

    def test_topic_overflow(self):
        with pytest.raises(MappingError, match="3 topics"):
            split_log("03" + TOPIC_A + TOPIC_B)

    def test_malformed(self):
        with pytest.raises(MappingError):
            split_log("0")

    def test_parse_log(self):
        log = parse_log("01" + TOPIC_A, 3, 1, "0xhash:alice.near", _hex(1), "0x4d2", CONTRACT)
        data = log.to_dict()
        assert data["logIndex"] == "0x3"
        assert data["transactionIndex"] == "0x1"
        assert data["topics"] == ["0x" + TOPIC_A]
        assert data["data"] == "0x"
        assert data["address"] == CONTRACT
        assert data["removed"] is False


# ============================================================================
# Receipts
# ============================================================================

class TestMapReceipt:

    def test_success(self):
        args = encode_call_args(CONTRACT, "0x01")
        tx = _tx(_function_call("call", args))
        logs = ["some plain text", "01" + TOPIC_A + "ff", "00"]
        receipt = map_receipt(_block(), HydratedTransaction(tx, _outcome("", logs=logs)), 4)
        assert receipt.status == "0x1"
        assert receipt.transaction_index == "0x4"
        assert receipt.gas_used == receipt.cumulative_gas_used == hex(2_428_000_000)
        assert receipt.contract_address is None
        assert [log.log_index for log in receipt.logs] == ["0x0", "0x1"]
        assert receipt.logs[0].topics == ("0x" + TOPIC_A,)
        assert receipt.logs[0].address == CONTRACT
        assert receipt.logs[0].block_hash == _hex(1)

    def test_failure(self):
        tx = _tx(_function_call("call", encode_call_args(CONTRACT, "0x")))
        outcome = _outcome(failure={"ActionError": {"index": 0}})
        receipt = map_receipt(_block(), HydratedTransaction(tx, outcome), 0)
        assert receipt.status == "0x0"

    def test_deploy_raw_address(self):
        tx = _tx(_function_call("deploy_code", b"\x60\x80"))
        payload = base64.b64encode(bytes.fromhex("42" * 20)).decode()
        receipt = map_receipt(_block(), HydratedTransaction(tx, _outcome(payload)), 0)
        assert receipt.contract_address == CONTRACT

    def test_deploy_json_address(self):
        tx = _tx(_function_call("deploy_code", b"\x60\x80"))
        payload = base64.b64encode(json.dumps("42" * 20).encode()).decode()
        receipt = map_receipt(_block(), HydratedTransaction(tx, _outcome(payload)), 0)
        assert receipt.contract_address == CONTRACT

    def test_call_result_is_not_contract_address(self):
        tx = _tx(_function_call("call", encode_call_args(CONTRACT, "0x")))
        payload = base64.b64encode(bytes(20)).decode()
        receipt = map_receipt(_block(), HydratedTransaction(tx, _outcome(payload)), 0)
        assert receipt.contract_address is None

    def test_logs_of_other_executors_ignored(self):
        args = encode_call_args(CONTRACT, "0x01")
        tx = _tx(_function_call("call", args))
        outcome = TransactionOutcome(
            block_hash=_b58(1),
            gas_burnt=10,
            status=ExecutionStatus(success_value=""),
            receipts_outcome=(
                ReceiptOutcome(id=_b58(50), logs=("cafe",), executor_id="token.near"),
                ReceiptOutcome(id=_b58(51), logs=("00ff",), executor_id="evm"),
            ),
        )
        receipt = map_receipt(_block(), HydratedTransaction(tx, outcome), 0)
        assert [log.data for log in receipt.logs] == ["0xff"]

    def test_deploy_on_other_contract_has_no_contract_address(self):
        tx = _tx(_function_call("deploy_code", b"\x60\x80"), receiver_id="factory.near")
        payload = base64.b64encode(bytes.fromhex("42" * 20)).decode()
        outcome = _outcome(payload, executor_id="factory.near")
        receipt = map_receipt(_block(), HydratedTransaction(tx, outcome), 0)
        assert receipt.contract_address is None
        assert receipt.logs == ()

    def test_requires_outcome(self):
        tx = _tx(_function_call("deposit"))
        with pytest.raises(MappingError):
            map_receipt(_block(), HydratedTransaction(tx), 0)

    def test_json_shape(self):
        tx = _tx(_function_call("deposit"))
        data = map_receipt(_block(), HydratedTransaction(tx, _outcome("")), 0).to_dict()
        assert data["contractAddress"] is None
        assert data["cumulativeGasUsed"] == data["gasUsed"]
        assert data["from"] == derive_address("alice.near")


# ============================================================================
# Native record parsing
# ============================================================================

class TestNativeRecords:

    def test_block_from_dict(self):
        block = NearBlock.from_dict({
            "header": {
                "height": 7, "hash": _b58(1), "prev_hash": _b58(2),
                "timestamp": 5_000_000, "gas_price": "100", "chunks_included": 1,
            },
            "chunks": [{"chunk_hash": _b58(3), "gas_used": 1, "gas_limit": 2, "tx_root": "11111111111111111111111111111111"}],
        })
        assert block.header.gas_price == 100
        assert block.chunks[0].is_empty

    def test_action_variants(self):
        assert Action.from_dict("CreateAccount").kind == "CreateAccount"
        action = Action.from_dict({"FunctionCall": {
            "method_name": "call", "args": "AQI=", "gas": 30, "deposit": "5",
        }})
        assert action.is_function_call
        assert action.args == b"\x01\x02"
        assert action.deposit == 5

    def test_missing_field(self):
        with pytest.raises(MappingError, match="height"):
            BlockHeader.from_dict({"hash": _b58(1)})

    def test_outcome_from_dict(self):
        outcome = TransactionOutcome.from_dict({
            "status": {"SuccessValue": ""},
            "transaction_outcome": {"block_hash": _b58(1), "outcome": {"gas_burnt": 10, "logs": []}},
            "receipts_outcome": [
                {"id": _b58(4), "outcome": {"logs": ["a"], "gas_burnt": 5, "executor_id": "evm"}},
                {"id": _b58(5), "outcome": {"logs": ["b"], "gas_burnt": 5}},
            ],
        })
        assert outcome.status.succeeded
        assert outcome.logs == ["a", "b"]
        assert outcome.receipts_outcome[0].executor_id == "evm"
        assert outcome.receipts_outcome[1].executor_id is None
        assert outcome.logs_of("evm") == ["a"]


# ============================================================================
# Sync status
# ============================================================================

class TestSyncStatus:

    def test_current_and_highest(self):
        status = map_sync_status(SyncInfo(latest_block_height=16, latest_block_hash=_b58(1), syncing=True))
        assert status.to_dict() == {
            "startingBlock": "0x0",
            "currentBlock": "0x10",
            "highestBlock": "0x10",
            "knownStates": "0x0",
            "pulledStates": "0x0",
        }
