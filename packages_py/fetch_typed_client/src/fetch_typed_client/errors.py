"""
Error types for fetch_typed_client.
"""
from enum import Enum
from typing import Generic, Optional, TypeVar

E = TypeVar("E")


class FetchTypedClientError(Exception):
    """Base class for all fetch_typed_client errors."""


class ClientErrorKind(str, Enum):
    """Classification of a failed exchange.

    AUTH_FAILED, SERVER_FAILED and SERVICE_UNAVAILABLE are reserved
    status-keyed classifications; the response resolver reports non-2xx
    statuses as NONE with the status code attached.
    """

    NONE = "none"
    INVALID_RESPONSE = "invalid_response"
    INVALID_REQUEST = "invalid_request"
    PARSING_ERROR = "parsing_error"
    AUTH_FAILED = "auth_failed"
    SERVER_FAILED = "server_failed"
    SERVICE_UNAVAILABLE = "service_unavailable"
    TRANSPORT_ERROR = "transport_error"

    @property
    def reserved_status_code(self) -> Optional[int]:
        return _RESERVED_STATUS_CODES.get(self)


_RESERVED_STATUS_CODES = {
    ClientErrorKind.AUTH_FAILED: 401,
    ClientErrorKind.SERVER_FAILED: 500,
    ClientErrorKind.SERVICE_UNAVAILABLE: 501,
}


class ClientError(FetchTypedClientError, Generic[E]):
    """The single error surfaced to callers for a failed exchange.

    Attributes:
        status_code: HTTP status, when a response was received.
        kind: Failure classification.
        model: Decoded error payload, when one could be decoded.
        cause: Underlying exception (transport error or build error).
    """

    def __init__(
        self,
        kind: ClientErrorKind,
        status_code: Optional[int] = None,
        model: Optional[E] = None,
        cause: Optional[BaseException] = None,
    ):
        self.kind = kind
        self.status_code = status_code
        self.model = model
        self.cause = cause
        super().__init__(self._describe())

    def _describe(self) -> str:
        parts = [f"kind={self.kind.value}"]
        if self.status_code is not None:
            parts.append(f"status_code={self.status_code}")
        if self.model is not None:
            parts.append(f"model={self.model!r}")
        if self.cause is not None:
            parts.append(f"cause={type(self.cause).__name__}: {self.cause}")
        return "ClientError(" + ", ".join(parts) + ")"

    def __repr__(self) -> str:
        return self._describe()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ClientError):
            return NotImplemented
        return (
            self.kind == other.kind
            and self.status_code == other.status_code
            and self.model == other.model
            and self.cause is other.cause
        )

    __hash__ = FetchTypedClientError.__hash__


class RequestBuildError(FetchTypedClientError, ValueError):
    """A request could not be built (bad URL, method or body encoding)."""


class UnsupportedAuthPlacementError(RequestBuildError):
    """API key body placement is declared but not supported."""


class DuplicateExchangeError(FetchTypedClientError, KeyError):
    """An exchange id is already registered."""


class StreamStatusError(FetchTypedClientError):
    """A streamed exchange answered with a non-2xx status."""

    def __init__(self, status_code: int, body: Optional[bytes] = None):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}")
