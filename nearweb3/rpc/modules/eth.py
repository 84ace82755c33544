"""
nearweb3 eth_* RPC Methods

Ethereum JSON-RPC namespace translated onto NEAR.

Architecture:
    - self.context.provider → upstream NEAR JSON-RPC client
    - self.context.account  → account calling the EVM contract
    - self.context.network  → network preset (EVM account id, net version)

Blocks and transactions are fetched fresh on every call, hydrated
(``nearweb3.hydrate``) and mapped (``nearweb3.mapping``). Balances, code,
nonces and storage are read through view calls on the EVM contract.
Signing, filters, uncles and mining have no NEAR counterpart and are
declared unsupported.
"""

from typing import Any, Dict, List, Optional, Tuple, Union

from ..params import (
    BlockRef,
    TransactionRequest,
    parse_block_ref,
    require_address,
    require_bool,
    require_hash,
    require_quantity,
)
from ..server import RPCModule, rpc_method
from ...constants import (
    CALL_METHOD_NAME,
    DEPLOY_CODE_METHOD_NAME,
    DEPOSIT_METHOD_NAME,
    GAS_AMOUNT,
    GET_BALANCE_METHOD_NAME,
    GET_CODE_METHOD_NAME,
    GET_NONCE_METHOD_NAME,
    GET_STORAGE_AT_METHOD_NAME,
    NODE_VERSION,
    TRANSFER_METHOD_NAME,
    VIEW_METHOD_NAME,
)
from ...crypto.address import derive_address
from ...crypto.encoding import (
    bytes_to_hex,
    encode_address_args,
    encode_call_args,
    encode_storage_args,
    encode_transfer_args,
    format_composite_hash,
    hex_to_bytes,
    int_to_hex,
    parse_composite_hash,
)
from ...exceptions import UpstreamError, ValidationError
from ...hydrate import (
    find_transaction_index,
    hydrate_all_transactions,
    hydrate_block,
    hydrate_transaction,
    merge_outcome,
    with_timeout,
)
from ...logger import get_logger
from ...mapping import map_block, map_receipt, map_sync_status, map_transaction
from ...types import (
    EthBlock,
    EthReceipt,
    EthTransaction,
    HydratedBlock,
    HydratedTransaction,
    NearBlock,
    SyncInfo,
    TransactionOutcome,
)

logger = get_logger(__name__)

_LATEST_TAGS = ("latest", "pending", "safe", "finalized")


class EthModule(RPCModule):
    """
    Ethereum RPC methods (eth_* namespace).
    """

    namespace = "eth"

    unsupported = (
        # Raw submission and signing: keys live with the account collaborator
        "sendRawTransaction",
        "sign",
        "signTransaction",
        "signTypedData",
        # Logs
        "getLogs",
        "getPastLogs",
        "pendingTransactions",
        # Uncles
        "getUncleByBlockHashAndIndex",
        "getUncleByBlockNumberAndIndex",
        "getUncleCountByBlockHash",
        "getUncleCountByBlockNumber",
        # Filters and subscriptions
        "newFilter",
        "newBlockFilter",
        "newPendingTransactionFilter",
        "uninstallFilter",
        "getFilterChanges",
        "getFilterLogs",
        "subscribe",
        "unsubscribe",
        # Mining
        "getWork",
        "submitWork",
        "submitHashrate",
        "mining",
        "hashrate",
        "coinbase",
    )

    # ══════════════════════════════════════════════════════════════════════════
    #  HELPERS
    # ══════════════════════════════════════════════════════════════════════════

    @property
    def _provider(self):
        return self.context.provider

    @property
    def _account(self):
        return self.context.account

    async def _sync_info(self) -> SyncInfo:
        status = await self._provider.status()
        return SyncInfo.from_dict(status["sync_info"])

    async def _resolve_height(self, ref: BlockRef) -> int:
        """Block tag or number → block height."""
        if isinstance(ref, int):
            return ref
        sync_info = await self._sync_info()
        if ref in _LATEST_TAGS:
            return sync_info.latest_block_height
        # earliest / genesis
        return sync_info.earliest_block_height or 0

    async def _fetch_block(self, block_id: Union[int, str]) -> NearBlock:
        return NearBlock.from_dict(await self._provider.block(block_id))

    async def _view(self, method_name: str, args: bytes) -> bytes:
        return await self._account.view_function(self.context.evm_account_id, method_name, args)

    async def _hydrate(self, block: NearBlock, full_tx: bool) -> HydratedBlock:
        hydrated = await hydrate_block(block, self._provider)
        if full_tx:
            hydrated = await hydrate_all_transactions(hydrated, self._provider)
        return hydrated

    async def _block_object(self, block: NearBlock, full_tx: bool) -> EthBlock:
        if not block.chunks:
            return EthBlock.empty()
        hydrated = await with_timeout(
            self._hydrate(block, full_tx), self.context.hydration_timeout
        )
        return map_block(hydrated, full_tx, self.context.evm_account_id)

    async def _transaction_at(self, block: NearBlock, index: int) -> Optional[EthTransaction]:
        hydrated = await hydrate_block(block, self._provider)
        if index >= len(hydrated.transactions):
            return None
        tx = await hydrate_transaction(hydrated, index, self._provider)
        return map_transaction(tx, index, self.context.evm_account_id)

    async def _locate(self, composite_hash: Any) -> Tuple[NearBlock, HydratedTransaction, int]:
        """
        Find a transaction by composite hash: fetch its outcome, then the
        block it was included in, and its position in that block.
        """
        if not isinstance(composite_hash, str):
            raise ValidationError(f"transaction hash must be a string, got {composite_hash!r}")
        tx_hash, account_id = parse_composite_hash(composite_hash)

        outcome = await self._provider.tx_status(tx_hash, account_id)
        block_hash = TransactionOutcome.from_dict(outcome).block_hash
        block = await self._fetch_block(block_hash)
        hydrated = await hydrate_block(block, self._provider)

        index = find_transaction_index(hydrated, tx_hash, account_id)
        if index is None:
            raise UpstreamError(f"Transaction {composite_hash} not found in block {block_hash}")
        return block, merge_outcome(hydrated.transactions[index], outcome), index

    # ══════════════════════════════════════════════════════════════════════════
    #  CHAIN STATE
    # ══════════════════════════════════════════════════════════════════════════

    @rpc_method
    async def protocolVersion(self) -> str:
        """Returns the provider version as hex-encoded UTF-8."""
        return bytes_to_hex(NODE_VERSION.encode("utf-8"))

    @rpc_method
    async def chainId(self) -> str:
        return int_to_hex(int(self.context.network.net_version))

    @rpc_method
    async def syncing(self):
        """
        Returns false, or a sync status object while the node is catching up.
        """
        sync_info = await self._sync_info()
        if not sync_info.syncing:
            return False
        return map_sync_status(sync_info)

    @rpc_method
    async def gasPrice(self) -> str:
        """Gas price of the latest block header."""
        sync_info = await self._sync_info()
        block = await self._fetch_block(sync_info.latest_block_hash)
        return int_to_hex(block.header.gas_price)

    @rpc_method
    async def accounts(self) -> List[str]:
        """Every locally known account, as derived EVM addresses."""
        account_ids = await self.context.key_store.get_accounts(self.context.network.network_id)
        return [derive_address(account_id) for account_id in account_ids]

    @rpc_method
    async def blockNumber(self) -> str:
        sync_info = await self._sync_info()
        return int_to_hex(sync_info.latest_block_height)

    # ══════════════════════════════════════════════════════════════════════════
    #  EVM CONTRACT STATE
    # ══════════════════════════════════════════════════════════════════════════

    @rpc_method
    async def getBalance(self, address: str, block: Optional[str] = None) -> str:
        address = require_address(address, "address")
        parse_block_ref(block)
        result = await self._view(GET_BALANCE_METHOD_NAME, encode_address_args(address))
        return int_to_hex(int.from_bytes(result, "big"))

    @rpc_method
    async def getStorageAt(self, address: str, position: str, block: Optional[str] = None) -> str:
        address = require_address(address, "address")
        key = require_quantity(position, "position").to_bytes(32, "big")
        parse_block_ref(block)
        result = await self._view(GET_STORAGE_AT_METHOD_NAME, encode_storage_args(address, key))
        return bytes_to_hex(result.rjust(32, b"\x00"))

    @rpc_method
    async def getCode(self, address: str, block: Optional[str] = None) -> str:
        address = require_address(address, "address")
        parse_block_ref(block)
        result = await self._view(GET_CODE_METHOD_NAME, encode_address_args(address))
        return bytes_to_hex(result)

    @rpc_method
    async def getTransactionCount(self, address: str, block: Optional[str] = None) -> str:
        address = require_address(address, "address")
        parse_block_ref(block)
        result = await self._view(GET_NONCE_METHOD_NAME, encode_address_args(address))
        return int_to_hex(int.from_bytes(result, "big"))

    # ══════════════════════════════════════════════════════════════════════════
    #  BLOCKS
    # ══════════════════════════════════════════════════════════════════════════

    @rpc_method
    async def getBlockByHash(self, block_hash: str, full_transactions: bool = False) -> EthBlock:
        block_id = require_hash(block_hash, "block_hash")
        full_transactions = require_bool(full_transactions, "full_transactions")
        block = await self._fetch_block(block_id)
        return await self._block_object(block, full_transactions)

    @rpc_method
    async def getBlockByNumber(self, block: str, full_transactions: bool = False) -> EthBlock:
        height = await self._resolve_height(parse_block_ref(block))
        full_transactions = require_bool(full_transactions, "full_transactions")
        native = await self._fetch_block(height)
        return await self._block_object(native, full_transactions)

    @rpc_method
    async def getBlockTransactionCountByHash(self, block_hash: str) -> str:
        block = await self._fetch_block(require_hash(block_hash, "block_hash"))
        return int_to_hex(block.header.chunks_included)

    @rpc_method
    async def getBlockTransactionCountByNumber(self, block: str) -> str:
        height = await self._resolve_height(parse_block_ref(block))
        native = await self._fetch_block(height)
        return int_to_hex(native.header.chunks_included)

    # ══════════════════════════════════════════════════════════════════════════
    #  TRANSACTIONS
    # ══════════════════════════════════════════════════════════════════════════

    @rpc_method
    async def getTransactionByHash(self, tx_hash: str) -> EthTransaction:
        """
        Args:
            tx_hash: composite hash ``<0x tx hash>:<signer account>``
        """
        _, tx, index = await self._locate(tx_hash)
        return map_transaction(tx, index, self.context.evm_account_id)

    @rpc_method
    async def getTransactionByBlockHashAndIndex(self, block_hash: str, index: str) -> Optional[EthTransaction]:
        block = await self._fetch_block(require_hash(block_hash, "block_hash"))
        return await self._transaction_at(block, require_quantity(index, "index"))

    @rpc_method
    async def getTransactionByBlockNumberAndIndex(self, block: str, index: str) -> Optional[EthTransaction]:
        height = await self._resolve_height(parse_block_ref(block))
        native = await self._fetch_block(height)
        return await self._transaction_at(native, require_quantity(index, "index"))

    @rpc_method
    async def getTransactionReceipt(self, tx_hash: str) -> EthReceipt:
        block, tx, index = await self._locate(tx_hash)
        return map_receipt(block, tx, index, self.context.evm_account_id)

    # ══════════════════════════════════════════════════════════════════════════
    #  EXECUTION
    # ══════════════════════════════════════════════════════════════════════════

    @rpc_method
    async def call(self, transaction: Dict[str, Any], block: Optional[str] = None) -> str:
        """Executes a read-only EVM call through the contract's view entry point."""
        request = TransactionRequest.from_dict(transaction)
        parse_block_ref(block)
        if request.to is None:
            raise ValidationError("transaction.to is required for eth_call")
        result = await self._view(VIEW_METHOD_NAME, encode_call_args(request.to, request.data))
        return bytes_to_hex(result)

    @rpc_method
    async def estimateGas(self, transaction: Dict[str, Any], block: Optional[str] = None) -> str:
        """Every contract call attaches the same fixed amount of gas."""
        TransactionRequest.from_dict(transaction)
        return int_to_hex(GAS_AMOUNT)

    @rpc_method
    async def sendTransaction(self, transaction: Dict[str, Any]) -> str:
        """
        Submits a contract deployment, deposit, transfer or call, signed by
        the provider account. Returns the composite transaction hash.
        The Ethereum ``gas`` field is ignored: NEAR prepaid gas is a different
        unit, so every call attaches ``GAS_AMOUNT``.
        """
        request = TransactionRequest.from_dict(transaction)
        account = self._account
        own_address = derive_address(account.account_id)

        if request.from_ is not None and request.from_ != own_address:
            raise ValidationError(
                f"transaction.from {request.from_} is not the provider account {own_address}"
            )

        has_data = request.data != "0x"
        deposit = 0
        if request.to is None:
            method, args = DEPLOY_CODE_METHOD_NAME, hex_to_bytes(request.data)
            deposit = request.value
        elif request.to == own_address and not has_data:
            method, args = DEPOSIT_METHOD_NAME, encode_address_args(request.to)
            deposit = request.value
        elif not has_data:
            method, args = TRANSFER_METHOD_NAME, encode_transfer_args(request.to, request.value)
        else:
            method, args = CALL_METHOD_NAME, encode_call_args(request.to, request.data)
            deposit = request.value

        logger.info(
            f"eth_sendTransaction: {method} from={own_address} "
            f"to={request.to or 'CREATE'} value={request.value}"
        )
        outcome = await account.function_call(
            self.context.evm_account_id,
            method,
            args,
            gas=GAS_AMOUNT,
            deposit=deposit,
        )
        return format_composite_hash(outcome["transaction"]["hash"], account.account_id)
