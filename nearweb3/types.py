"""
nearweb3 Types

Record types on both sides of the translation:
- native NEAR records parsed from upstream JSON (read-only)
- Ethereum-shaped records produced by the mapper

All records are frozen. Hydration attaches convenience fields with
``dataclasses.replace`` instead of mutating what the upstream returned.
"""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional, Tuple, Union

from .constants import (
    EMPTY_BLOCK_NONCE,
    EMPTY_LOGS_BLOOM,
    EMPTY_UNCLE_HASH,
    EMPTY_TX_ROOT,
    PLACEHOLDER_SIGNATURE_VALUE,
    ZERO_ADDRESS,
    ZERO_HASH,
)
from .crypto.encoding import base64_to_bytes
from .exceptions import MappingError


def _int(value: Any, name: str) -> int:
    """NEAR encodes u128 amounts as decimal strings and u64 values as numbers."""
    if isinstance(value, bool):
        raise MappingError(f"{name}: expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    raise MappingError(f"{name}: expected an integer, got {value!r}")


def _require(data: Dict[str, Any], key: str, record: str) -> Any:
    if not isinstance(data, dict) or key not in data:
        raise MappingError(f"{record}: missing field '{key}'")
    return data[key]


# =============================================================================
# NATIVE (NEAR) RECORDS
# =============================================================================

@dataclass(frozen=True)
class BlockHeader:
    height: int
    hash: str
    prev_hash: str
    timestamp: int
    gas_price: int
    chunks_included: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BlockHeader":
        return cls(
            height=_int(_require(data, "height", "BlockHeader"), "height"),
            hash=_require(data, "hash", "BlockHeader"),
            prev_hash=_require(data, "prev_hash", "BlockHeader"),
            timestamp=_int(_require(data, "timestamp", "BlockHeader"), "timestamp"),
            gas_price=_int(data.get("gas_price", 0), "gas_price"),
            chunks_included=_int(data.get("chunks_included", 0), "chunks_included"),
        )


@dataclass(frozen=True)
class ChunkHeader:
    """A chunk reference as listed in a block."""
    chunk_hash: str
    gas_used: int
    gas_limit: int
    tx_root: str

    @property
    def is_empty(self) -> bool:
        return self.tx_root == EMPTY_TX_ROOT

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChunkHeader":
        return cls(
            chunk_hash=_require(data, "chunk_hash", "ChunkHeader"),
            gas_used=_int(data.get("gas_used", 0), "gas_used"),
            gas_limit=_int(data.get("gas_limit", 0), "gas_limit"),
            tx_root=data.get("tx_root", ""),
        )


@dataclass(frozen=True)
class NearBlock:
    header: BlockHeader
    chunks: Tuple[ChunkHeader, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NearBlock":
        return cls(
            header=BlockHeader.from_dict(_require(data, "header", "NearBlock")),
            chunks=tuple(ChunkHeader.from_dict(c) for c in data.get("chunks", [])),
        )


@dataclass(frozen=True)
class Action:
    """
    One NEAR action. ``kind`` is the upstream variant name
    (``FunctionCall``, ``Transfer``, ``CreateAccount``, ...).
    """
    kind: str
    method_name: Optional[str] = None
    args: bytes = b""
    gas: int = 0
    deposit: int = 0

    @property
    def is_function_call(self) -> bool:
        return self.kind == "FunctionCall"

    @classmethod
    def from_dict(cls, data: Union[str, Dict[str, Any]]) -> "Action":
        # Payload-less variants arrive as a bare string
        if isinstance(data, str):
            return cls(kind=data)
        if not isinstance(data, dict) or len(data) != 1:
            raise MappingError(f"Action: expected a single-variant object, got {data!r}")

        kind, body = next(iter(data.items()))
        body = body or {}
        args = body.get("args")
        return cls(
            kind=kind,
            method_name=body.get("method_name"),
            args=base64_to_bytes(args) if args else b"",
            gas=_int(body.get("gas", 0), "gas"),
            deposit=_int(body.get("deposit", 0), "deposit"),
        )


@dataclass(frozen=True)
class NearTransaction:
    hash: str
    signer_id: str
    receiver_id: str
    nonce: int
    actions: Tuple[Action, ...] = ()

    # Attached during hydration
    block_hash: Optional[str] = None
    block_height: Optional[int] = None
    gas_price: Optional[int] = None

    @property
    def function_call(self) -> Optional[Action]:
        """The first function-call action, if any."""
        for action in self.actions:
            if action.is_function_call:
                return action
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NearTransaction":
        return cls(
            hash=_require(data, "hash", "NearTransaction"),
            signer_id=_require(data, "signer_id", "NearTransaction"),
            receiver_id=data.get("receiver_id", ""),
            nonce=_int(data.get("nonce", 0), "nonce"),
            actions=tuple(Action.from_dict(a) for a in data.get("actions", [])),
        )


@dataclass(frozen=True)
class Chunk:
    """A fully fetched chunk."""
    chunk_hash: str
    transactions: Tuple[NearTransaction, ...] = ()

    # Attached during hydration
    block_hash: Optional[str] = None
    block_height: Optional[int] = None
    gas_price: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Chunk":
        header = _require(data, "header", "Chunk")
        return cls(
            chunk_hash=_require(header, "chunk_hash", "Chunk"),
            transactions=tuple(
                NearTransaction.from_dict(tx) for tx in data.get("transactions", [])
            ),
        )


@dataclass(frozen=True)
class ExecutionStatus:
    success_value: Optional[str] = None
    failure: Optional[Any] = None

    @property
    def succeeded(self) -> bool:
        return self.success_value is not None

    def payload(self) -> bytes:
        """Decoded return value; empty when the execution produced none."""
        if not self.success_value:
            return b""
        return base64_to_bytes(self.success_value)

    @classmethod
    def from_dict(cls, data: Union[str, Dict[str, Any]]) -> "ExecutionStatus":
        # "Unknown" / "Started" carry no outcome
        if not isinstance(data, dict):
            return cls()
        return cls(
            success_value=data.get("SuccessValue"),
            failure=data.get("Failure"),
        )


@dataclass(frozen=True)
class ReceiptOutcome:
    id: str
    logs: Tuple[str, ...] = ()
    gas_burnt: int = 0
    executor_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReceiptOutcome":
        outcome = _require(data, "outcome", "ReceiptOutcome")
        return cls(
            id=data.get("id", ""),
            logs=tuple(outcome.get("logs", [])),
            gas_burnt=_int(outcome.get("gas_burnt", 0), "gas_burnt"),
            executor_id=outcome.get("executor_id"),
        )


@dataclass(frozen=True)
class TransactionOutcome:
    """The result of a ``tx`` status query."""
    block_hash: str
    gas_burnt: int
    status: ExecutionStatus
    receipts_outcome: Tuple[ReceiptOutcome, ...] = ()

    @property
    def logs(self) -> List[str]:
        return [log for receipt in self.receipts_outcome for log in receipt.logs]

    def logs_of(self, executor_id: str) -> List[str]:
        """Logs emitted by receipts that ``executor_id`` executed."""
        return [
            log
            for receipt in self.receipts_outcome
            if receipt.executor_id == executor_id
            for log in receipt.logs
        ]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TransactionOutcome":
        tx_outcome = _require(data, "transaction_outcome", "TransactionOutcome")
        outcome = _require(tx_outcome, "outcome", "TransactionOutcome")
        return cls(
            block_hash=_require(tx_outcome, "block_hash", "TransactionOutcome"),
            gas_burnt=_int(outcome.get("gas_burnt", 0), "gas_burnt"),
            status=ExecutionStatus.from_dict(data.get("status")),
            receipts_outcome=tuple(
                ReceiptOutcome.from_dict(r) for r in data.get("receipts_outcome", [])
            ),
        )


@dataclass(frozen=True)
class HydratedTransaction:
    transaction: NearTransaction
    outcome: Optional[TransactionOutcome] = None


@dataclass(frozen=True)
class HydratedBlock:
    block: NearBlock
    transactions: Tuple[HydratedTransaction, ...] = ()


@dataclass(frozen=True)
class SyncInfo:
    latest_block_height: int
    latest_block_hash: str
    syncing: bool = False
    earliest_block_height: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SyncInfo":
        earliest = data.get("earliest_block_height")
        return cls(
            latest_block_height=_int(
                _require(data, "latest_block_height", "SyncInfo"), "latest_block_height"
            ),
            latest_block_hash=data.get("latest_block_hash", ""),
            syncing=bool(data.get("syncing", False)),
            earliest_block_height=None if earliest is None else _int(earliest, "earliest_block_height"),
        )


# =============================================================================
# ETHEREUM RECORDS
# =============================================================================

def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _serialize(value: Any) -> Any:
    if isinstance(value, EthRecord):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_serialize(v) for v in value]
    return value


class EthRecord:
    """Serializes dataclass fields to the camelCase JSON-RPC shape."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            f.metadata.get("json", _camel(f.name)): _serialize(getattr(self, f.name))
            for f in fields(self)
        }


def _sender():
    return field(metadata={"json": "from"})


@dataclass(frozen=True)
class EthTransaction(EthRecord):
    hash: str
    nonce: str
    block_hash: Optional[str]
    block_number: Optional[str]
    transaction_index: Optional[str]
    from_: str = _sender()
    to: Optional[str] = None
    gas: str = "0x0"
    gas_price: str = "0x0"
    value: str = "0x0"
    input: str = "0x"
    v: str = PLACEHOLDER_SIGNATURE_VALUE
    r: str = PLACEHOLDER_SIGNATURE_VALUE
    s: str = PLACEHOLDER_SIGNATURE_VALUE


@dataclass(frozen=True)
class EthBlock(EthRecord):
    number: Optional[str]
    hash: Optional[str]
    parent_hash: Optional[str]
    gas_limit: str
    gas_used: str
    timestamp: str
    transactions: Tuple[Union[str, EthTransaction], ...] = ()
    nonce: Optional[str] = EMPTY_BLOCK_NONCE
    sha3_uncles: str = EMPTY_UNCLE_HASH
    logs_bloom: str = EMPTY_LOGS_BLOOM
    transactions_root: str = ZERO_HASH
    state_root: str = ZERO_HASH
    receipts_root: str = ZERO_HASH
    miner: str = ZERO_ADDRESS
    difficulty: str = "0x0"
    total_difficulty: str = "0x0"
    extra_data: str = "0x"
    size: str = "0x0"
    uncles: Tuple[str, ...] = ()

    @classmethod
    def empty(cls) -> "EthBlock":
        """Placeholder for a block that carries no chunks."""
        return cls(
            number=None,
            hash=None,
            parent_hash=None,
            nonce=None,
            gas_limit="0x0",
            gas_used="0x0",
            timestamp="0x0",
        )


@dataclass(frozen=True)
class EthLog(EthRecord):
    log_index: str
    transaction_index: str
    transaction_hash: str
    block_hash: str
    block_number: str
    address: Optional[str]
    data: str
    topics: Tuple[str, ...] = ()
    removed: bool = False


@dataclass(frozen=True)
class EthReceipt(EthRecord):
    transaction_hash: str
    transaction_index: str
    block_hash: str
    block_number: str
    from_: str = _sender()
    to: Optional[str] = None
    gas_used: str = "0x0"
    cumulative_gas_used: str = "0x0"
    contract_address: Optional[str] = None
    logs: Tuple[EthLog, ...] = ()
    status: str = "0x0"
    logs_bloom: str = EMPTY_LOGS_BLOOM


@dataclass(frozen=True)
class SyncStatus(EthRecord):
    starting_block: str
    current_block: str
    highest_block: str
    known_states: str = "0x0"
    pulled_states: str = "0x0"
