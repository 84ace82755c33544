"""
nearweb3 Object Mapper

Pure functions turning one fully-populated NEAR record into one
Ethereum-shaped record:

- map_block: NEAR block (+ hydrated transactions) → EthBlock
- map_transaction: hydrated transaction → EthTransaction
- map_receipt: hydrated transaction → EthReceipt (with parsed logs)
- parse_log: one opaque EVM log string → EthLog
- map_sync_status: NEAR sync info → SyncStatus

Nothing here performs I/O. Records that cannot be expressed as Ethereum
objects raise ``MappingError``.
"""

import json
from typing import List, Optional, Sequence, Tuple

from .constants import (
    ADDRESS_LENGTH,
    CALL_METHOD_NAME,
    DEFAULT_EVM_ACCOUNT_ID,
    DEPLOY_CODE_METHOD_NAME,
    DEPOSIT_METHOD_NAME,
    RAW_CALL_METHOD_NAME,
    TRANSFER_METHOD_NAME,
    WITHDRAW_METHOD_NAME,
)
from .crypto.address import derive_address
from .crypto.encoding import (
    base58_to_hex,
    bytes_to_hex,
    convert_timestamp,
    decode_call_args,
    decode_transfer_args,
    decode_withdraw_args,
    format_composite_hash,
    int_to_hex,
    is_hex,
    remove_0x,
)
from .crypto.transaction import decode_signed_transaction
from .exceptions import MappingError, ValidationError
from .logger import get_logger
from .types import (
    Action,
    ChunkHeader,
    EthBlock,
    EthLog,
    EthReceipt,
    EthTransaction,
    HydratedBlock,
    HydratedTransaction,
    NearBlock,
    NearTransaction,
    SyncInfo,
    SyncStatus,
)

logger = get_logger(__name__)

# One topic is a 32-byte word: 64 hex characters
_TOPIC_HEX_LENGTH = 64


# =============================================================================
# BLOCKS
# =============================================================================

def block_gas_used(chunks: Sequence[ChunkHeader]) -> int:
    """Sum of ``gas_used`` over all chunks; undefined for an empty block."""
    if not chunks:
        raise MappingError("Cannot compute gasUsed of a block without chunks")
    return sum(chunk.gas_used for chunk in chunks)


def block_gas_limit(chunks: Sequence[ChunkHeader]) -> int:
    """Maximum ``gas_limit`` over all chunks; undefined for an empty block."""
    if not chunks:
        raise MappingError("Cannot compute gasLimit of a block without chunks")
    return max(chunk.gas_limit for chunk in chunks)


def map_block(
    hydrated: HydratedBlock,
    include_full_tx: bool = False,
    evm_account_id: str = DEFAULT_EVM_ACCOUNT_ID,
) -> EthBlock:
    """
    Build an EthBlock from a block passed through ``hydrate_block``.

    Args:
        hydrated: Block with its flattened transaction list. When
            ``include_full_tx`` is set, every transaction must also carry
            its outcome (see ``hydrate_all_transactions``).
        include_full_tx: Return full transaction objects instead of
            composite hashes.
        evm_account_id: Account of the EVM contract, see ``map_transaction``.

    Raises:
        MappingError: if the block has no chunks. Callers answer such
            blocks with ``EthBlock.empty()`` instead.
    """
    block = hydrated.block
    header = block.header

    gas_used = block_gas_used(block.chunks)
    gas_limit = block_gas_limit(block.chunks)

    if include_full_tx:
        transactions = tuple(
            map_transaction(tx, index, evm_account_id)
            for index, tx in enumerate(hydrated.transactions)
        )
    else:
        transactions = tuple(
            format_composite_hash(tx.transaction.hash, tx.transaction.signer_id)
            for tx in hydrated.transactions
        )

    return EthBlock(
        number=int_to_hex(header.height),
        hash=base58_to_hex(header.hash),
        parent_hash=base58_to_hex(header.prev_hash),
        gas_limit=int_to_hex(gas_limit),
        gas_used=int_to_hex(gas_used),
        timestamp=convert_timestamp(header.timestamp),
        transactions=transactions,
    )


# =============================================================================
# TRANSACTIONS
# =============================================================================

def sum_deposits(actions: Sequence[Action]) -> int:
    """Total attached deposit; a transaction always has at least one action."""
    if not actions:
        raise MappingError("Transaction has no actions")
    return sum(action.deposit for action in actions)


def _destination(
    tx: NearTransaction, evm_account_id: str
) -> Tuple[Optional[str], Optional[int], str, Optional[str]]:
    """
    Decode the EVM-contract arguments of ``tx``. Calls to any other
    account go to the address derived from the receiver.

    Returns:
        (to, value, input, sender) where ``value`` and ``sender`` are None
        when the arguments do not determine them.
    """
    action = tx.function_call
    if action is None or tx.receiver_id != evm_account_id:
        return derive_address(tx.receiver_id), None, "0x", None

    method = action.method_name
    try:
        if method == CALL_METHOD_NAME:
            to, data = decode_call_args(action.args)
            return to, None, data, None

        if method == DEPLOY_CODE_METHOD_NAME:
            return None, None, bytes_to_hex(action.args), None

        if method == DEPOSIT_METHOD_NAME:
            return derive_address(tx.signer_id), None, "0x", None

        if method == TRANSFER_METHOD_NAME:
            to, amount = decode_transfer_args(action.args)
            return to, amount, "0x", None

        if method == RAW_CALL_METHOD_NAME:
            signed = decode_signed_transaction(action.args)
            return signed.to_hex, signed.value, bytes_to_hex(signed.data), signed.sender()

        if method == WITHDRAW_METHOD_NAME:
            account_id, amount = decode_withdraw_args(action.args)
            return derive_address(account_id), amount, "0x", None
    except ValidationError as e:
        raise MappingError(f"Cannot decode '{method}' arguments of {tx.hash}: {e.message}") from e

    return derive_address(tx.receiver_id), None, "0x", None


def map_transaction(
    hydrated: HydratedTransaction,
    tx_index: int,
    evm_account_id: str = DEFAULT_EVM_ACCOUNT_ID,
) -> EthTransaction:
    """
    Build an EthTransaction.

    For transactions sent to ``evm_account_id``, destination, value and
    input come from the function-call action, interpreted by its method
    name. When the arguments do not carry a value, the summed attached
    deposit is used.
    """
    tx = hydrated.transaction
    outcome = hydrated.outcome

    deposits = sum_deposits(tx.actions)
    to, value, data, sender = _destination(tx, evm_account_id)

    block_hash = outcome.block_hash if outcome is not None else tx.block_hash
    if outcome is not None:
        gas = outcome.gas_burnt
    else:
        gas = sum(action.gas for action in tx.actions)

    return EthTransaction(
        hash=format_composite_hash(tx.hash, tx.signer_id),
        nonce=int_to_hex(tx.nonce),
        block_hash=base58_to_hex(block_hash) if block_hash else None,
        block_number=int_to_hex(tx.block_height) if tx.block_height is not None else None,
        transaction_index=int_to_hex(tx_index),
        from_=sender or derive_address(tx.signer_id),
        to=to,
        gas=int_to_hex(gas),
        gas_price=int_to_hex(tx.gas_price or 0),
        value=int_to_hex(deposits if value is None else value),
        input=data,
    )


# =============================================================================
# RECEIPTS & LOGS
# =============================================================================

def _contract_address(payload: bytes) -> str:
    """
    The EVM contract returns the created address either as 20 raw bytes or
    as a JSON string holding its hex form.
    """
    if len(payload) == ADDRESS_LENGTH:
        return bytes_to_hex(payload)
    try:
        decoded = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise MappingError(f"Unrecognized deploy result: {payload!r}") from e
    if not isinstance(decoded, str) or not is_hex(decoded) or len(remove_0x(decoded)) != ADDRESS_LENGTH * 2:
        raise MappingError(f"Unrecognized deploy result: {decoded!r}")
    return "0x" + remove_0x(decoded).lower()


def _creates_contract(tx: NearTransaction, evm_account_id: str) -> bool:
    action = tx.function_call
    if action is None or tx.receiver_id != evm_account_id:
        return False
    if action.method_name == DEPLOY_CODE_METHOD_NAME:
        return True
    if action.method_name == RAW_CALL_METHOD_NAME:
        try:
            return decode_signed_transaction(action.args).to is None
        except ValidationError as e:
            raise MappingError(f"Cannot decode raw_call arguments of {tx.hash}: {e.message}") from e
    return False


def split_log(raw: str) -> Tuple[List[str], str]:
    """
    Split one EVM log string into (topics, data).

    Layout (hex): ``NN`` topic count, then ``NN`` topics of 64 hex
    characters each, then the log data.
    """
    body = remove_0x(raw)
    if len(body) < 2 or not is_hex(body) or len(body) % 2:
        raise MappingError(f"Malformed log entry: {raw!r}")

    count = int(body[:2], 16)
    topics_end = 2 + count * _TOPIC_HEX_LENGTH
    if topics_end > len(body):
        raise MappingError(
            f"Log declares {count} topics but only {(len(body) - 2) // _TOPIC_HEX_LENGTH} fit"
        )

    topics = [
        "0x" + body[start:start + _TOPIC_HEX_LENGTH].lower()
        for start in range(2, topics_end, _TOPIC_HEX_LENGTH)
    ]
    return topics, "0x" + body[topics_end:].lower()


def parse_log(
    raw: str,
    log_index: int,
    tx_index: int,
    transaction_hash: str,
    block_hash: str,
    block_number: str,
    address: Optional[str],
) -> EthLog:
    topics, data = split_log(raw)
    return EthLog(
        log_index=int_to_hex(log_index),
        transaction_index=int_to_hex(tx_index),
        transaction_hash=transaction_hash,
        block_hash=block_hash,
        block_number=block_number,
        address=address,
        data=data,
        topics=tuple(topics),
    )


def map_receipt(
    block: NearBlock,
    hydrated: HydratedTransaction,
    tx_index: int,
    evm_account_id: str = DEFAULT_EVM_ACCOUNT_ID,
) -> EthReceipt:
    """
    Build an EthReceipt for a transaction with a fetched outcome.

    ``contractAddress`` is only set when the call returned a payload and
    created a contract: a ``deploy_code`` call, or a ``raw_call`` whose
    signed transaction has no recipient. Logs are only read from receipts
    executed by the EVM contract.
    """
    outcome = hydrated.outcome
    if outcome is None:
        raise MappingError(f"Transaction {hydrated.transaction.hash} has no outcome")

    tx = hydrated.transaction
    mapped = map_transaction(hydrated, tx_index, evm_account_id)

    payload = outcome.status.payload()
    contract_address = None
    if payload and _creates_contract(tx, evm_account_id):
        contract_address = _contract_address(payload)

    block_hash = base58_to_hex(block.header.hash)
    block_number = int_to_hex(block.header.height)
    log_address = mapped.to or contract_address

    logs = []
    for raw in outcome.logs_of(evm_account_id):
        if not is_hex(raw):
            logger.debug("Skipping non-EVM log of %s: %r", tx.hash, raw)
            continue
        logs.append(
            parse_log(raw, len(logs), tx_index, mapped.hash, block_hash, block_number, log_address)
        )

    gas_used = int_to_hex(outcome.gas_burnt)
    return EthReceipt(
        transaction_hash=mapped.hash,
        transaction_index=int_to_hex(tx_index),
        block_hash=block_hash,
        block_number=block_number,
        from_=mapped.from_,
        to=mapped.to,
        gas_used=gas_used,
        cumulative_gas_used=gas_used,
        contract_address=contract_address,
        logs=tuple(logs),
        status="0x1" if outcome.status.succeeded else "0x0",
    )


# =============================================================================
# SYNC STATUS
# =============================================================================

def map_sync_status(sync_info: SyncInfo) -> SyncStatus:
    """
    NEAR reports no separate sync target, so current and highest block are
    both the latest height and the state counters stay at zero.
    """
    latest = int_to_hex(sync_info.latest_block_height)
    return SyncStatus(
        starting_block="0x0",
        current_block=latest,
        highest_block=latest,
    )
