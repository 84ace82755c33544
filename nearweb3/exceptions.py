"""
nearweb3 Exceptions

Error taxonomy of the provider. Every exception carries the JSON-RPC error
code the router reports it under, so handlers only ever raise and never
return an error as a result.
"""

from typing import Any, Dict, List, Optional


class ProviderError(Exception):
    """Base exception for nearweb3."""

    code: int = -32603

    def __init__(self, message: str, data: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.data = data

    def to_dict(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


class ValidationError(ProviderError):
    """Malformed input: bad hex, bad account id, wrong parameter arity or type."""

    code = -32602


class MappingError(ValidationError):
    """A native record cannot be expressed as an Ethereum object."""
    pass


class UnsupportedMethodError(ProviderError):
    """The method exists in Ethereum but has no mapping onto NEAR."""

    code = -32004

    def __init__(self, method: str):
        super().__init__(f"{method} is unsupported")
        self.method = method


class UnknownMethodError(ProviderError):
    """The method is not in the dispatch table."""

    code = -32601

    def __init__(self, method: str, params: Any = None):
        super().__init__(f"Unknown method: {method} with params {params!r}")
        self.method = method
        self.params = params


class UpstreamError(ProviderError):
    """The NEAR RPC or the account collaborator reported a failure."""

    code = -32000


class AggregateHydrationError(UpstreamError):
    """One or more concurrent fetches of a hydration fan-out failed."""

    def __init__(self, stage: str, errors: List[BaseException]):
        self.stage = stage
        self.errors = list(errors)
        super().__init__(
            f"{stage}: {len(self.errors)} fetch(es) failed",
            data=[str(e) for e in self.errors],
        )


class HydrationTimeoutError(UpstreamError):
    """Hydration did not finish within the caller's deadline."""
    pass


class ConfigurationError(ProviderError):
    """Configuration error."""
    pass
