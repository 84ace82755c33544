"""
nearweb3 JSON-RPC 2.0 Server

Routes Ethereum JSON-RPC calls to the translation handlers:
- Static dispatch table built from module declarations
- Explicitly unsupported methods and unknown methods fail distinctly
- Positional parameters bound against the handler signature
- Batch requests
"""

import asyncio
import inspect
import json
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from ..constants import LOG_INCLUDE_REQUEST_CONTENT
from ..exceptions import (
    ConfigurationError,
    ProviderError,
    UnknownMethodError,
    UnsupportedMethodError,
    UpstreamError,
    ValidationError,
)
from ..logger import get_logger
from ..types import EthRecord

logger = get_logger(__name__)


class RPCErrorCode(IntEnum):
    """JSON-RPC 2.0 error codes."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    # Server errors (-32000 to -32099)
    SERVER_ERROR = -32000
    METHOD_NOT_SUPPORTED = -32004
    LIMIT_EXCEEDED = -32005


@dataclass
class RPCError(Exception):
    """Framing error, raised before a method is routed."""

    code: int
    message: str
    data: Optional[Any] = None

    def to_dict(self) -> dict:
        result = {
            "code": int(self.code),
            "message": self.message,
        }
        if self.data is not None:
            result["data"] = self.data
        return result


@dataclass
class RPCRequest:
    """JSON-RPC request."""

    jsonrpc: str
    method: str
    params: Union[List, Dict, None]
    id: Union[str, int, None]

    @classmethod
    def from_dict(cls, data: dict) -> "RPCRequest":
        if not isinstance(data, dict):
            raise RPCError(RPCErrorCode.INVALID_REQUEST, "Invalid request")
        return cls(
            jsonrpc=data.get("jsonrpc", "2.0"),
            method=data.get("method", ""),
            params=data.get("params"),
            id=data.get("id"),
        )

    @property
    def is_notification(self) -> bool:
        """Check if this is a notification (no id)."""
        return self.id is None


@dataclass
class RPCResponse:
    """JSON-RPC response."""

    jsonrpc: str = "2.0"
    result: Optional[Any] = None
    error: Optional[Dict] = None
    id: Union[str, int, None] = None

    def to_dict(self) -> dict:
        response = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            response["error"] = self.error
        else:
            response["result"] = self.result
        return response

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


# Type for RPC method handlers
RPCMethod = Callable[..., Any]


class HandlerKind(Enum):
    IMPLEMENTED = "implemented"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class MethodHandler:
    """One entry of the dispatch table."""

    name: str
    kind: HandlerKind
    func: Optional[RPCMethod] = None

    def bind(self, params: Union[List, Dict, None]) -> inspect.BoundArguments:
        """
        Bind request params to the handler signature.

        Raises:
            ValidationError: on wrong arity or an unexpected params shape
        """
        if params is None:
            args, kwargs = [], {}
        elif isinstance(params, list):
            args, kwargs = params, {}
        elif isinstance(params, dict):
            args, kwargs = [], params
        else:
            raise ValidationError(f"{self.name}: params must be an array")

        try:
            return inspect.signature(self.func).bind(*args, **kwargs)
        except TypeError as e:
            raise ValidationError(f"{self.name}: {e}") from e


def _serialize(result: Any) -> Any:
    if isinstance(result, EthRecord):
        return result.to_dict()
    if isinstance(result, (list, tuple)):
        return [_serialize(r) for r in result]
    return result


class RPCModule:
    """
    Base class for RPC modules.

    Subclass this to create method namespaces like eth_, net_, etc.
    Methods decorated with ``@rpc_method`` are routed; names listed in
    ``unsupported`` exist in Ethereum but fail with
    ``UnsupportedMethodError``.
    """

    # Namespace prefix (e.g., "eth", "net")
    namespace: str = ""

    # Method names (without namespace) that have no NEAR equivalent
    unsupported: Tuple[str, ...] = ()

    def __init__(self, context: Any = None):
        """
        Initialize module with optional context.

        Args:
            context: Provider context (upstream client, account, config)
        """
        self.context = context

    def _full_name(self, name: str) -> str:
        return f"{self.namespace}_{name}" if self.namespace else name

    def get_methods(self) -> Dict[str, RPCMethod]:
        """
        Get all routed methods in this module.

        Returns:
            Dict mapping method names to callables
        """
        methods = {}
        for name in dir(self):
            if name.startswith("_"):
                continue
            attr = getattr(self, name)
            if callable(attr) and hasattr(attr, "__rpc_method__"):
                methods[self._full_name(name)] = attr
        return methods

    def get_handlers(self) -> Dict[str, MethodHandler]:
        handlers = {
            name: MethodHandler(name, HandlerKind.IMPLEMENTED, func)
            for name, func in self.get_methods().items()
        }
        for name in self.unsupported:
            full_name = self._full_name(name)
            if full_name in handlers:
                raise ConfigurationError(f"{full_name} is both implemented and unsupported")
            handlers[full_name] = MethodHandler(full_name, HandlerKind.UNSUPPORTED)
        return handlers


def rpc_method(func: RPCMethod) -> RPCMethod:
    """
    Decorator to mark a method as an RPC endpoint.

    Usage:
        @rpc_method
        async def blockNumber(self) -> str:
            ...
    """
    func.__rpc_method__ = True
    return func


class RPCServer:
    """
    JSON-RPC 2.0 server.

    Manages the dispatch table and request handling. Transport-agnostic:
    the HTTP app hands it raw request bodies.
    """

    def __init__(self, max_batch_size: int = 100):
        self._methods: Dict[str, MethodHandler] = {}
        self._modules: Dict[str, RPCModule] = {}
        self.max_batch_size = max_batch_size

    def register_module(self, module: RPCModule):
        """
        Register an RPC module.

        Args:
            module: RPCModule instance
        """
        handlers = module.get_handlers()
        duplicates = set(handlers) & set(self._methods)
        if duplicates:
            raise ConfigurationError(f"Methods registered twice: {sorted(duplicates)}")
        self._methods.update(handlers)
        self._modules[module.namespace] = module
        logger.info(
            f"Registered RPC module: {module.namespace} "
            f"({len(handlers) - len(module.unsupported)} methods, "
            f"{len(module.unsupported)} unsupported)"
        )

    def get_methods(self, kind: Optional[HandlerKind] = None) -> List[str]:
        """Get registered method names, optionally of one kind."""
        return [
            name for name, handler in self._methods.items()
            if kind is None or handler.kind is kind
        ]

    async def route(self, method: str, params: Union[List, Dict, None] = None) -> Any:
        """
        Dispatch one call.

        Raises:
            UnknownMethodError: ``method`` is not in the dispatch table
            UnsupportedMethodError: ``method`` has no mapping onto NEAR
            ValidationError: params do not fit the handler
        """
        handler = self._methods.get(method)
        if handler is None:
            raise UnknownMethodError(method, params)
        if handler.kind is HandlerKind.UNSUPPORTED:
            raise UnsupportedMethodError(method)

        bound = handler.bind(params)
        result = await handler.func(*bound.args, **bound.kwargs)
        return _serialize(result)

    async def handle_request(self, data: Union[str, bytes, dict, list]) -> Optional[str]:
        """
        Handle a JSON-RPC request.

        Args:
            data: Request data (JSON string or parsed object)

        Returns:
            JSON response string, or None for notifications
        """
        try:
            if isinstance(data, (str, bytes)):
                parsed = json.loads(data)
            else:
                parsed = data
        except json.JSONDecodeError as e:
            error = RPCError(RPCErrorCode.PARSE_ERROR, f"Parse error: {e}")
            return RPCResponse(error=error.to_dict()).to_json()

        # Handle batch request
        if isinstance(parsed, list):
            if not parsed:
                error = RPCError(RPCErrorCode.INVALID_REQUEST, "Empty batch")
                return RPCResponse(error=error.to_dict()).to_json()
            if len(parsed) > self.max_batch_size:
                error = RPCError(
                    RPCErrorCode.LIMIT_EXCEEDED,
                    f"Batch of {len(parsed)} exceeds limit of {self.max_batch_size}",
                )
                return RPCResponse(error=error.to_dict()).to_json()

            responses = await asyncio.gather(*[
                self._handle_single(req) for req in parsed
            ])

            # Filter out None responses (notifications)
            responses = [r for r in responses if r is not None]
            if not responses:
                return None
            return json.dumps(responses)

        # Handle single request
        response = await self._handle_single(parsed)
        if response is None:
            return None
        return json.dumps(response)

    async def _handle_single(self, data: dict) -> Optional[dict]:
        """Handle a single request and return response dict."""
        try:
            request = RPCRequest.from_dict(data)
        except RPCError as e:
            return RPCResponse(error=e.to_dict()).to_dict()

        if request.jsonrpc != "2.0":
            return RPCResponse(
                id=request.id,
                error=RPCError(RPCErrorCode.INVALID_REQUEST, "Invalid JSON-RPC version").to_dict()
            ).to_dict()

        if not request.method or not isinstance(request.method, str):
            return RPCResponse(
                id=request.id,
                error=RPCError(RPCErrorCode.INVALID_REQUEST, "Missing method").to_dict()
            ).to_dict()

        if LOG_INCLUDE_REQUEST_CONTENT:
            logger.debug(f"{request.method} params={request.params!r}")
        else:
            logger.debug(f"{request.method}")

        try:
            result = await self.route(request.method, request.params)
            if request.is_notification:
                return None
            return RPCResponse(id=request.id, result=result).to_dict()

        except ProviderError as e:
            if isinstance(e, UpstreamError):
                logger.warning(f"{request.method} failed upstream: {e.message}")
            else:
                logger.debug(f"{request.method} rejected: {e.message}")
            if request.is_notification:
                return None
            return RPCResponse(id=request.id, error=e.to_dict()).to_dict()

        except Exception as e:
            logger.exception(f"Error handling RPC method {request.method}")
            if request.is_notification:
                return None
            return RPCResponse(
                id=request.id,
                error=RPCError(RPCErrorCode.INTERNAL_ERROR, str(e)).to_dict()
            ).to_dict()
