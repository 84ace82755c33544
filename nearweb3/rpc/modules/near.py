"""
nearweb3 near_* RPC Methods

Moves value between the EVM contract and native NEAR accounts. The
``to`` field of these calls is a NEAR account id, not an EVM address.
"""

from typing import Any, Dict, Tuple

from ..params import require_account_id, require_quantity
from ..server import RPCModule, rpc_method
from ...constants import TRANSFER_METHOD_NAME, WITHDRAW_METHOD_NAME
from ...crypto.address import derive_address
from ...crypto.encoding import encode_transfer_args, encode_withdraw_args, format_composite_hash
from ...exceptions import ValidationError
from ...logger import get_logger

logger = get_logger(__name__)


def _near_transfer(transaction: Any) -> Tuple[str, int]:
    if not isinstance(transaction, dict):
        raise ValidationError(f"transaction must be an object, got {transaction!r}")
    if transaction.get("to") is None:
        raise ValidationError("transaction.to must be a NEAR account id")
    account_id = require_account_id(transaction["to"], "transaction.to")
    amount = require_quantity(transaction.get("value", "0x0"), "transaction.value")
    return account_id, amount


class NearModule(RPCModule):
    """
    NEAR value-transfer methods (near_* namespace).
    """

    namespace = "near"

    async def _submit(self, method_name: str, args: bytes) -> str:
        account = self.context.account
        outcome = await account.function_call(self.context.evm_account_id, method_name, args)
        return format_composite_hash(outcome["transaction"]["hash"], account.account_id)

    @rpc_method
    async def retrieveNear(self, transaction: Dict[str, Any]) -> str:
        """
        Withdraw value held by the provider account in the EVM contract to
        a NEAR account.
        """
        account_id, amount = _near_transfer(transaction)
        logger.info(f"near_retrieveNear: {amount} to {account_id}")
        return await self._submit(WITHDRAW_METHOD_NAME, encode_withdraw_args(account_id, amount))

    @rpc_method
    async def transferNear(self, transaction: Dict[str, Any]) -> str:
        """
        Transfer value inside the EVM contract to the address derived from
        a NEAR account.
        """
        account_id, amount = _near_transfer(transaction)
        logger.info(f"near_transferNear: {amount} to {account_id}")
        return await self._submit(
            TRANSFER_METHOD_NAME, encode_transfer_args(derive_address(account_id), amount)
        )
