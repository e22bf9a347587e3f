"""
Typed HTTP request/response client for Python.

Builds requests from structured configuration, dispatches them over a
transport and resolves responses into typed success or error models, through
callback, awaitable and streaming calling conventions.
"""
from .types import (
    HttpMethod,
    Placement,
    NoAuth,
    ApiKeyAuth,
    BasicAuth,
    BearerAuth,
    AuthStrategy,
    RawBody,
    JsonBody,
    EncodableBody,
    BodySpec,
    TimeoutConfig,
    RequestDescriptor,
    TransportResponse,
    Success,
    Failure,
    Outcome,
    ExchangeState,
    Serializer,
)
from .errors import (
    FetchTypedClientError,
    ClientError,
    ClientErrorKind,
    RequestBuildError,
    UnsupportedAuthPlacementError,
    DuplicateExchangeError,
    StreamStatusError,
)
from .config import (
    ClientConfig,
    LoggingConfig,
    DefaultSerializer,
)
from .core.base_client import TypedFetchClient
from .core.request_builder import build_request
from .core.response_resolver import resolve_response
from .streaming.exchange_registry import ExchangeRegistry
from .transport.base import Transport
from .transport.httpx_transport import HttpxTransport
from .factory import create_client

__all__ = [
    # Types
    "HttpMethod",
    "Placement",
    "NoAuth",
    "ApiKeyAuth",
    "BasicAuth",
    "BearerAuth",
    "AuthStrategy",
    "RawBody",
    "JsonBody",
    "EncodableBody",
    "BodySpec",
    "TimeoutConfig",
    "RequestDescriptor",
    "TransportResponse",
    "Success",
    "Failure",
    "Outcome",
    "ExchangeState",
    "Serializer",
    # Errors
    "FetchTypedClientError",
    "ClientError",
    "ClientErrorKind",
    "RequestBuildError",
    "UnsupportedAuthPlacementError",
    "DuplicateExchangeError",
    "StreamStatusError",
    # Config
    "ClientConfig",
    "LoggingConfig",
    "DefaultSerializer",
    # Client
    "TypedFetchClient",
    "build_request",
    "resolve_response",
    "ExchangeRegistry",
    # Transport
    "Transport",
    "HttpxTransport",
    # Factory
    "create_client",
]

__version__ = "0.1.0"
