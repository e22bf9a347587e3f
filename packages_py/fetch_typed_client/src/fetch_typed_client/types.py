"""
Type definitions for fetch_typed_client.
"""
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import (
    Any,
    Callable,
    Generic,
    Literal,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    TypeVar,
    Union,
    runtime_checkable,
)

T = TypeVar("T")

# HTTP methods
HttpMethod = Literal["GET", "POST", "PUT", "DELETE"]

HTTP_METHODS = ("GET", "POST", "PUT", "DELETE")

# Stream framing of the default transport
StreamFraming = Literal["ndjson", "sse", "chunk"]

# Query values are rendered with str()
QueryValue = Union[str, int, float, bool]
QuerySpec = Union[Mapping[str, QueryValue], Sequence[Tuple[str, QueryValue]]]

ExchangeId = int


def _mask_secret(value: Optional[str], visible_chars: int = 4) -> str:
    """Mask secret value for safe repr."""
    if value is None:
        return "<None>"
    if len(value) <= visible_chars:
        return "*" * len(value)
    return value[:visible_chars] + "*" * (len(value) - visible_chars)


# Auth strategies
#
# Closed union, matched exhaustively by auth.auth_handler.create_auth_handler:
# - NoAuth: nothing injected
# - ApiKeyAuth: key/value pair in a header, URL query field or (unsupported) body
# - BasicAuth: Authorization: Basic <base64(username:password)>
# - BearerAuth: Authorization: Bearer <token>


class Placement(str, Enum):
    """Where API key material is injected."""

    HEADER = "header"
    URL = "url"
    BODY = "body"


@dataclass(frozen=True)
class NoAuth:
    """No authentication."""


@dataclass(frozen=True)
class ApiKeyAuth:
    """API key sent as a header, URL query field or body field."""

    key: str
    value: str
    placement: Placement = Placement.HEADER

    def __repr__(self) -> str:
        return (
            f"ApiKeyAuth(key={self.key!r}, value={_mask_secret(self.value)!r}, "
            f"placement={self.placement.value!r})"
        )


@dataclass(frozen=True)
class BasicAuth:
    """HTTP basic authentication."""

    username: str
    password: str

    def __repr__(self) -> str:
        return f"BasicAuth(username={self.username!r}, password={_mask_secret(self.password)!r})"


@dataclass(frozen=True)
class BearerAuth:
    """Bearer token authentication."""

    token: str

    def __repr__(self) -> str:
        return f"BearerAuth(token={_mask_secret(self.token)!r})"


AuthStrategy = Union[NoAuth, ApiKeyAuth, BasicAuth, BearerAuth]


# Body specs
#
# Closed union, matched exhaustively by core.request_builder.build_body.


@dataclass(frozen=True)
class RawBody:
    """Body sent as-is."""

    data: bytes


@dataclass(frozen=True)
class JsonBody:
    """String-keyed map of JSON-compatible values."""

    fields: Mapping[str, Any]


@dataclass(frozen=True)
class EncodableBody:
    """Typed value encoded by the client serializer or a custom encoder."""

    value: Any
    encoder: Optional["Serializer"] = None


BodySpec = Union[RawBody, JsonBody, EncodableBody]


@dataclass(frozen=True)
class TimeoutConfig:
    """Timeout configuration in seconds."""

    connect: float = 60.0
    read: float = 60.0
    write: float = 60.0


@dataclass(frozen=True)
class RequestDescriptor:
    """Immutable request produced by the request builder."""

    url: str
    method: HttpMethod
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    body: Optional[bytes] = None
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)


@dataclass
class TransportResponse:
    """Raw outcome of a single-shot exchange, as reported by a transport."""

    status_code: Optional[int] = None
    body: Optional[bytes] = None
    error: Optional[BaseException] = None
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Success(Generic[T]):
    """Resolved success. value is None for a 2xx response without body."""

    value: Optional[T]
    status_code: Optional[int] = None


@dataclass(frozen=True)
class Failure:
    """Resolved failure carrying a ClientError."""

    error: Any


Outcome = Union[Success[Any], Failure]


class ExchangeState(str, Enum):
    """Lifecycle state of a streaming exchange."""

    REGISTERED = "registered"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ExchangeState.COMPLETED, ExchangeState.CANCELLED, ExchangeState.FAILED)


@runtime_checkable
class Serializer(Protocol):
    """Serializer protocol for custom encoding and decoding."""

    def encode(self, value: Any) -> bytes:
        """Encode value to bytes."""
        ...

    def decode(self, data: bytes, model: Any = None) -> Any:
        """Decode bytes, into model when given."""
        ...


class StreamListener(Protocol):
    """Receiver of streaming transport events."""

    def dispatch_fragment(self, exchange_id: ExchangeId, data: bytes) -> None:
        ...

    def complete(self, exchange_id: ExchangeId, error: Optional[BaseException] = None) -> None:
        ...


# Caller-facing callbacks
CompletionCallback = Callable[[Optional[Any], Optional[Any]], None]
ResultCallback = Callable[[Outcome], None]
FragmentCallback = Callable[[Any], None]
StreamCompleteCallback = Callable[[Optional[BaseException]], None]
