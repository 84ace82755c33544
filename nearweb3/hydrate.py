"""
nearweb3 Hydration Pipeline

Expands the terse block summaries returned by NEAR into fully populated
records by issuing further upstream calls::

    Summary → ChunksFetched → TransactionsFlattened → OutcomesFetched

Chunk fetches of one block, and outcome fetches of one block's
transactions, are issued concurrently and joined. If any single fetch of a
fan-out fails, the whole stage fails with ``AggregateHydrationError``
carrying every sub-failure.
"""

import asyncio
from dataclasses import replace
from typing import Any, Awaitable, Dict, List, Optional, TypeVar

from .exceptions import AggregateHydrationError, HydrationTimeoutError, ValidationError
from .logger import get_logger
from .types import (
    Chunk,
    ChunkHeader,
    HydratedBlock,
    HydratedTransaction,
    NearBlock,
    TransactionOutcome,
)

logger = get_logger(__name__)

T = TypeVar("T")


async def _gather_all(stage: str, aws: List[Awaitable[T]]) -> List[T]:
    """Run ``aws`` concurrently; fail with every error if any of them failed."""
    results = await asyncio.gather(*aws, return_exceptions=True)
    errors = [r for r in results if isinstance(r, BaseException)]
    if errors:
        logger.warning("%s: %d of %d fetches failed", stage, len(errors), len(results))
        raise AggregateHydrationError(stage, errors)
    return results


async def hydrate_chunk(chunk_ref: ChunkHeader, block: NearBlock, provider) -> Chunk:
    """
    Fetch one chunk of ``block``.

    A chunk whose ``tx_root`` is the empty sentinel carries no transactions
    and is answered without a network call. The block hash, height and gas
    price are attached to the result.
    """
    if chunk_ref.is_empty:
        chunk = Chunk(chunk_hash=chunk_ref.chunk_hash)
    else:
        chunk = Chunk.from_dict(await provider.chunk(chunk_ref.chunk_hash))

    header = block.header
    return replace(
        chunk,
        block_hash=header.hash,
        block_height=header.height,
        gas_price=header.gas_price,
    )


async def hydrate_block(block: NearBlock, provider) -> HydratedBlock:
    """
    Fetch every chunk of ``block`` concurrently and flatten their
    transactions, in chunk order then in-chunk order, regardless of the
    order the fetches complete in.
    """
    chunks = await _gather_all(
        "hydrate_block",
        [hydrate_chunk(chunk_ref, block, provider) for chunk_ref in block.chunks],
    )

    transactions = tuple(
        HydratedTransaction(
            transaction=replace(
                tx,
                block_hash=chunk.block_hash,
                block_height=chunk.block_height,
                gas_price=chunk.gas_price,
            )
        )
        for chunk in chunks
        for tx in chunk.transactions
    )

    logger.debug(
        "Hydrated block %s: %d chunks, %d transactions",
        block.header.hash, len(chunks), len(transactions),
    )
    return HydratedBlock(block=block, transactions=transactions)


def merge_outcome(stub: HydratedTransaction, outcome: Dict[str, Any]) -> HydratedTransaction:
    """Attach a ``tx`` status response to a transaction taken from a chunk."""
    return replace(stub, outcome=TransactionOutcome.from_dict(outcome))


def find_transaction_index(hydrated: HydratedBlock, tx_hash: str, signer_id: str) -> Optional[int]:
    """Position of a transaction (base58 hash + signer) in the flattened list."""
    for index, stub in enumerate(hydrated.transactions):
        tx = stub.transaction
        if tx.hash == tx_hash and tx.signer_id == signer_id:
            return index
    return None


async def hydrate_transaction(hydrated: HydratedBlock, tx_index: int, provider) -> HydratedTransaction:
    """
    Fetch the outcome of the transaction at ``tx_index`` of a block already
    passed through :func:`hydrate_block`.
    """
    if not 0 <= tx_index < len(hydrated.transactions):
        raise ValidationError(
            f"Transaction index {tx_index} out of range for block with "
            f"{len(hydrated.transactions)} transactions"
        )

    stub = hydrated.transactions[tx_index]
    tx = stub.transaction
    outcome = await provider.tx_status(tx.hash, tx.signer_id)
    return merge_outcome(stub, outcome)


async def hydrate_all_transactions(hydrated: HydratedBlock, provider) -> HydratedBlock:
    """Fetch the outcome of every transaction of ``hydrated`` concurrently."""
    if not hydrated.transactions:
        return hydrated

    transactions = await _gather_all(
        "hydrate_all_transactions",
        [
            hydrate_transaction(hydrated, index, provider)
            for index in range(len(hydrated.transactions))
        ],
    )
    return replace(hydrated, transactions=tuple(transactions))


def _discard_result(task: "asyncio.Future") -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("Hydration finished with an error after its deadline: %s", exc)


async def with_timeout(aw: Awaitable[T], seconds: float) -> T:
    """
    Race ``aw`` against a timer.

    Hydration is not cancellable: when the timer wins, the work is left to
    finish in the background, its result is discarded, and
    ``HydrationTimeoutError`` is raised.
    """
    task = asyncio.ensure_future(aw)
    done, _ = await asyncio.wait({task}, timeout=seconds)
    if task in done:
        return task.result()

    task.add_done_callback(_discard_result)
    raise HydrationTimeoutError(f"Hydration did not finish within {seconds}s")
