"""
nearweb3 HTTP application.

Exposes the JSON-RPC router over HTTP: ``POST /`` and ``POST /rpc`` accept
a single request or a batch.
"""

from typing import Optional

import httpx
from fastapi import FastAPI, Request, Response
from starlette.middleware.cors import CORSMiddleware

from .config.loader import ProviderConfig
from .constants import CLIENT_NAME, NODE_VERSION
from .logger import get_logger
from .exceptions import ConfigurationError
from .near.account import Account, InMemoryKeyStore, Signer, load_key_file
from .near.provider import JsonRpcProvider
from .rpc.config import RPCConfig
from .rpc.context import ProviderContext
from .rpc.modules import EthModule, NearModule, NetModule, Web3Module
from .rpc.server import RPCError, RPCErrorCode, RPCResponse, RPCServer

logger = get_logger(__name__)


def build_rpc_server(context: ProviderContext, rpc_config: Optional[RPCConfig] = None) -> RPCServer:
    """Create the router with every enabled namespace registered."""
    rpc_config = rpc_config or RPCConfig()
    server = RPCServer(max_batch_size=rpc_config.http.max_batch_size)

    modules = rpc_config.modules
    if modules.eth:
        server.register_module(EthModule(context))
    if modules.net:
        server.register_module(NetModule(context))
    if modules.web3:
        server.register_module(Web3Module(context))
    if modules.near:
        server.register_module(NearModule(context))
    return server


def create_app(
    config: ProviderConfig,
    signer: Optional[Signer] = None,
    key_store: Optional[InMemoryKeyStore] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: validated provider configuration
        signer: signs function calls of the provider account; without one,
            ``eth_sendTransaction`` and the near_* methods fail upstream
        key_store: registry of local accounts. The key file named by the
            network's ``key_path`` is registered into it at startup.
    """
    network = config.network
    rpc_config = config.rpc

    app = FastAPI(
        title="nearweb3",
        description="Ethereum JSON-RPC provider for NEAR.",
        version=NODE_VERSION,
    )

    if rpc_config.http.cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(rpc_config.http.cors_origins),
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    http_client = httpx.AsyncClient(timeout=rpc_config.upstream_timeout)
    provider = JsonRpcProvider(network.node_url, client=http_client)
    key_store = key_store or InMemoryKeyStore()
    context = ProviderContext(
        provider=provider,
        account=Account(provider, config.provider.account_id, network.network_id, signer),
        key_store=key_store,
        network=network,
        hydration_timeout=rpc_config.hydration_timeout,
    )
    rpc_server = build_rpc_server(context, rpc_config)
    app.state.rpc_server = rpc_server
    app.state.context = context

    @app.on_event("startup")
    async def startup():
        logger.info(f"Upstream NEAR RPC: {network.node_url} (network {network.name})")
        logger.info(f"Provider account: {config.provider.account_id}, EVM contract: {network.evm_account_id}")
        if network.key_path:
            try:
                await load_key_file(key_store, network.network_id, network.key_path)
            except ConfigurationError as e:
                # Preset key paths are optional, explicitly configured ones are not
                if config.provider.key_path:
                    raise
                logger.warning(f"{e.message}; eth_accounts will be empty")
        if signer is None:
            logger.warning("No signer configured: eth_sendTransaction and near_* calls will fail")

    @app.on_event("shutdown")
    async def shutdown():
        await http_client.aclose()
        logger.info("Shared HTTP client closed.")

    async def rpc_endpoint(request: Request) -> Response:
        """JSON-RPC 2.0 endpoint"""
        body = await request.body()
        if len(body) > rpc_config.http.max_request_size:
            error = RPCError(RPCErrorCode.LIMIT_EXCEEDED, "Request body too large")
            return Response(
                content=RPCResponse(error=error.to_dict()).to_json(),
                status_code=413,
                media_type="application/json",
            )

        result = await rpc_server.handle_request(body)
        if result is None:
            return Response(status_code=204)
        # handle_request returns a JSON string; send it raw to avoid double-encoding
        return Response(content=result, media_type="application/json")

    app.add_api_route("/", rpc_endpoint, methods=["POST"])
    app.add_api_route("/rpc", rpc_endpoint, methods=["POST"])

    @app.get("/")
    async def root():
        return {
            "client": f"{CLIENT_NAME}/{NODE_VERSION}",
            "network": network.name,
            "net_version": network.net_version,
        }

    return app
