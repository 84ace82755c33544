"""
NEAR account collaborator.

``Account`` is what the RPC handlers use to reach the EVM contract:
``view_function`` for read-only calls and ``function_call`` for signed
calls. Key material and signing stay behind the injected ``Signer``; the
key store only records which accounts exist locally.
"""

import asyncio
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

import base58

from ..constants import GAS_AMOUNT
from ..crypto.address import is_valid_account_id
from ..exceptions import ConfigurationError, UpstreamError
from ..logger import get_logger
from ..types import ExecutionStatus

logger = get_logger(__name__)


@dataclass(frozen=True)
class FunctionCall:
    """A function call about to be signed."""
    contract_id: str
    method_name: str
    args: bytes
    gas: int = GAS_AMOUNT
    deposit: int = 0


class Signer(Protocol):
    """Signs a function call on behalf of an account; returns the base64 signed tx."""

    async def sign_function_call(self, account_id: str, network_id: str, call: FunctionCall) -> str:
        ...


class InMemoryKeyStore:
    """Registry of local keys, keyed by network id and account id."""

    def __init__(self):
        self._keys: Dict[str, Dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    async def set_key(self, network_id: str, account_id: str, key: Any) -> None:
        async with self._lock:
            self._keys.setdefault(network_id, {})[account_id] = key

    async def get_key(self, network_id: str, account_id: str) -> Optional[Any]:
        return self._keys.get(network_id, {}).get(account_id)

    async def remove_key(self, network_id: str, account_id: str) -> None:
        async with self._lock:
            self._keys.get(network_id, {}).pop(account_id, None)

    async def get_accounts(self, network_id: str) -> List[str]:
        return sorted(self._keys.get(network_id, {}))


async def load_key_file(key_store: InMemoryKeyStore, network_id: str, path: str) -> str:
    """
    Register the account of a NEAR key file (``{"account_id", "public_key",
    "secret_key"}``, as written by near-cli) under ``network_id``.

    Returns:
        The registered account id

    Raises:
        ConfigurationError: if the file is missing or malformed
    """
    key_file = Path(path).expanduser()
    try:
        data = json.loads(key_file.read_text())
    except FileNotFoundError:
        raise ConfigurationError(f"Key file not found: {key_file}") from None
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Cannot read key file {key_file}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Key file {key_file} must hold a JSON object")
    account_id = data.get("account_id")
    if not isinstance(account_id, str) or not is_valid_account_id(account_id):
        raise ConfigurationError(f"Key file {key_file} has an invalid account_id: {account_id!r}")
    if not (data.get("secret_key") or data.get("private_key")):
        raise ConfigurationError(f"Key file {key_file} holds no secret key")

    await key_store.set_key(network_id, account_id, data)
    logger.info(f"Loaded key of {account_id} for network {network_id}")
    return account_id


class Account:
    """One NEAR account, bound to a provider, a network id and a signer."""

    def __init__(self, provider, account_id: str, network_id: str, signer: Optional[Signer] = None):
        self.provider = provider
        self.account_id = account_id
        self.network_id = network_id
        self.signer = signer

    async def view_function(self, contract_id: str, method_name: str, args: bytes) -> bytes:
        """Run a read-only contract method and return its raw result bytes."""
        result = await self.provider.query(
            f"call/{contract_id}/{method_name}",
            base58.b58encode(args).decode("ascii"),
        )
        for line in result.get("logs", []):
            logger.debug(f"{contract_id}.{method_name} log: {line}")
        return bytes(result.get("result", []))

    async def function_call(
        self,
        contract_id: str,
        method_name: str,
        args: bytes,
        gas: int = GAS_AMOUNT,
        deposit: int = 0,
    ) -> Dict[str, Any]:
        """
        Sign and submit a contract call, waiting for its outcome.

        Raises:
            UpstreamError: if no signer is configured or the call failed
        """
        if self.signer is None:
            raise UpstreamError(f"No signer configured for {self.account_id}")

        call = FunctionCall(contract_id, method_name, args, gas, deposit)
        signed_tx = await self.signer.sign_function_call(self.account_id, self.network_id, call)
        outcome = await self.provider.send_transaction(signed_tx)

        status = ExecutionStatus.from_dict(outcome.get("status"))
        if status.failure is not None:
            raise UpstreamError(
                f"{contract_id}.{method_name} failed", data=status.failure
            )
        logger.info(
            f"{self.account_id} called {contract_id}.{method_name} "
            f"(tx {outcome.get('transaction', {}).get('hash')})"
        )
        return outcome
