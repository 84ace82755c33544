"""
Tests for the NEAR JSON-RPC client, served by an in-process httpx
transport.
"""

import json

import httpx
import pytest

from nearweb3.exceptions import UpstreamError
from nearweb3.near.provider import JsonRpcProvider

NODE_URL = "http://near.test:3030"


def _provider(handler) -> JsonRpcProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return JsonRpcProvider(NODE_URL + "/", client=client)


def _result_handler(requests, result):
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        requests.append(body)
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})
    return handler


class TestRequests:

    @pytest.mark.asyncio
    async def test_block_by_height(self):
        requests = []
        provider = _provider(_result_handler(requests, {"header": {}}))
        assert await provider.block(42) == {"header": {}}
        assert requests[0]["method"] == "block"
        assert requests[0]["params"] == {"block_id": 42}
        assert requests[0]["jsonrpc"] == "2.0"

    @pytest.mark.asyncio
    async def test_latest_block(self):
        requests = []
        provider = _provider(_result_handler(requests, {}))
        await provider.block()
        assert requests[0]["params"] == {"finality": "final"}

    @pytest.mark.asyncio
    async def test_chunk_and_tx(self):
        requests = []
        provider = _provider(_result_handler(requests, {}))
        await provider.chunk("Chunk1")
        await provider.tx_status("Tx1", "alice.near")
        assert requests[0]["params"] == {"chunk_id": "Chunk1"}
        assert requests[1]["method"] == "tx"
        assert requests[1]["params"] == ["Tx1", "alice.near"]
        assert requests[0]["id"] != requests[1]["id"]

    @pytest.mark.asyncio
    async def test_query(self):
        requests = []
        provider = _provider(_result_handler(requests, {"result": [1], "logs": []}))
        assert await provider.query("call/evm/get_nonce", "abc") == {"result": [1], "logs": []}
        assert requests[0]["params"] == ["call/evm/get_nonce", "abc"]

    @pytest.mark.asyncio
    async def test_send_transaction(self):
        requests = []
        provider = _provider(_result_handler(requests, {"status": {}}))
        await provider.send_transaction("c2lnbmVk")
        assert requests[0]["method"] == "broadcast_tx_commit"


class TestErrors:

    @pytest.mark.asyncio
    async def test_rpc_error(self):
        error = {"code": -32000, "message": "Server error", "data": "UNKNOWN_BLOCK"}

        def handler(request):
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": error})

        with pytest.raises(UpstreamError) as exc_info:
            await _provider(handler).block(1)
        assert exc_info.value.data == error
        assert exc_info.value.code == -32000

    @pytest.mark.asyncio
    async def test_query_error_in_result(self):
        def handler(request):
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": {"error": "wasm trap"}})

        with pytest.raises(UpstreamError, match="wasm trap"):
            await _provider(handler).query("call/evm/view", "")

    @pytest.mark.asyncio
    async def test_http_status(self):
        def handler(request):
            return httpx.Response(503, text="unavailable")

        with pytest.raises(UpstreamError):
            await _provider(handler).status()

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        def handler(request):
            return httpx.Response(200, text="<html>")

        with pytest.raises(UpstreamError):
            await _provider(handler).status()

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(UpstreamError, match="unreachable"):
            await _provider(handler).status()
