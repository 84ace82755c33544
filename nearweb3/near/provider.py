"""
NEAR JSON-RPC client.

Thin async transport over ``httpx.AsyncClient``. Every call returns the
``result`` member of the upstream response; transport failures and
JSON-RPC errors raise ``UpstreamError`` with the upstream error attached.
Nothing is retried here.
"""

import json
import time
from typing import Any, Dict, List, Optional, Union

import httpx

from ..constants import LOG_INCLUDE_REQUEST_CONTENT
from ..exceptions import UpstreamError
from ..logger import get_logger

logger = get_logger(__name__)

BlockId = Union[int, str]


class JsonRpcProvider:
    """
    Client of one NEAR RPC endpoint.

    The ``httpx.AsyncClient`` is injected so the application owns its
    lifecycle; when omitted, the provider creates and closes its own.
    """

    _rpc_id_counter = 0

    def __init__(self, url: str, client: Optional[httpx.AsyncClient] = None, timeout: float = 30.0):
        self.url = url.rstrip('/')
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    @classmethod
    def _next_id(cls) -> int:
        cls._rpc_id_counter += 1
        return cls._rpc_id_counter

    async def _rpc_call(self, method: str, params: Union[List[Any], Dict[str, Any]]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": self._next_id(),
            "method": method,
            "params": params,
        }
        if LOG_INCLUDE_REQUEST_CONTENT:
            logger.debug(f"NEAR {method} request: {json.dumps(params)}")

        start_time = time.time()
        try:
            response = await self.client.post(
                self.url,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
            elapsed = time.time() - start_time
            logger.debug(f"NEAR {method} → {self.url} [{response.status_code}] ({elapsed:.3f}s)")
            response.raise_for_status()
            body = response.json()
        except httpx.RequestError as exc:
            elapsed = time.time() - start_time
            logger.warning(f"NEAR {method} → {self.url} NETWORK_ERROR ({elapsed:.3f}s)")
            raise UpstreamError(f"NEAR RPC unreachable: {exc}") from exc
        except (json.JSONDecodeError, httpx.HTTPStatusError) as exc:
            elapsed = time.time() - start_time
            logger.warning(f"NEAR {method} → {self.url} ERROR ({elapsed:.3f}s): {exc}")
            raise UpstreamError(f"NEAR RPC {method} failed: {exc}") from exc

        if "error" in body:
            error = body["error"]
            message = error.get("message", "error") if isinstance(error, dict) else str(error)
            raise UpstreamError(f"NEAR RPC {method}: {message}", data=error)
        return body.get("result")

    # -----------------------------------------------------------------
    #  Upstream operations
    # -----------------------------------------------------------------

    async def status(self) -> Dict[str, Any]:
        return await self._rpc_call("status", [])

    async def block(self, block_id: Optional[BlockId] = None, finality: str = "final") -> Dict[str, Any]:
        """Fetch a block by height or base58 hash, or the latest one at ``finality``."""
        if block_id is None:
            return await self._rpc_call("block", {"finality": finality})
        return await self._rpc_call("block", {"block_id": block_id})

    async def chunk(self, chunk_hash: str) -> Dict[str, Any]:
        return await self._rpc_call("chunk", {"chunk_id": chunk_hash})

    async def tx_status(self, tx_hash: str, account_id: str) -> Dict[str, Any]:
        """Outcome of a transaction (base58 hash) sent by ``account_id``."""
        return await self._rpc_call("tx", [tx_hash, account_id])

    async def query(self, path: str, data: str) -> Dict[str, Any]:
        """
        Path-style query, e.g. ``call/<contract>/<method>`` with base58 args.

        A contract-level failure is reported inside the result; it is
        raised like any other upstream error.
        """
        result = await self._rpc_call("query", [path, data])
        if isinstance(result, dict) and result.get("error"):
            raise UpstreamError(f"NEAR query {path}: {result['error']}", data=result)
        return result

    async def send_transaction(self, signed_tx: str) -> Dict[str, Any]:
        """Broadcast a base64 signed transaction and wait for its outcome."""
        return await self._rpc_call("broadcast_tx_commit", [signed_tx])
