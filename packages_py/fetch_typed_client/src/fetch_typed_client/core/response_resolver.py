"""
Response resolution for fetch_typed_client.

Every calling convention of the client funnels a finished exchange through
resolve_response, which decides between a typed success, a typed error
payload, a transport failure and a decode failure.
"""
import logging
from typing import Any, Optional, Tuple

from ..errors import ClientError, ClientErrorKind
from ..types import Failure, Outcome, Serializer, Success

logger = logging.getLogger("fetch_typed_client.response_resolver")


def is_success_status(status_code: int) -> bool:
    """Inclusive 2xx range check."""
    return 200 <= status_code <= 299


def _try_decode(
    serializer: Serializer,
    data: bytes,
    model: Any,
    log_failures: bool,
) -> Tuple[bool, Any]:
    try:
        return True, serializer.decode(data, model)
    except Exception as e:
        if log_failures:
            name = getattr(model, "__name__", repr(model))
            logger.warning(f"Parsing error {name}: {type(e).__name__}: {e}")
        return False, None


def resolve_response(
    status_code: Optional[int],
    body: Optional[bytes],
    transport_error: Optional[BaseException],
    *,
    serializer: Serializer,
    response_model: Any = None,
    error_model: Any = None,
    log_failures: bool = True,
) -> Outcome:
    """
    Resolve a finished exchange into Success or Failure.

    Order of decisions:
    1. transport error -> TRANSPORT_ERROR
    2. missing status -> INVALID_RESPONSE
    3. non-2xx -> NONE, with the error model when the body decodes as one
    4. 2xx without body -> Success(None)
    5. 2xx with body -> success model, else PARSING_ERROR with the error
       model when the same bytes decode as one

    Empty bytes count as no body.
    """
    if transport_error is not None:
        return Failure(ClientError(ClientErrorKind.TRANSPORT_ERROR, cause=transport_error))

    if status_code is None:
        return Failure(ClientError(ClientErrorKind.INVALID_RESPONSE))

    data = body or None

    if not is_success_status(status_code):
        ok, model = _try_decode(serializer, data or b"", error_model, log_failures and data is not None)
        return Failure(
            ClientError(ClientErrorKind.NONE, status_code=status_code, model=model if ok else None)
        )

    if data is None:
        return Success(None, status_code=status_code)

    ok, value = _try_decode(serializer, data, response_model, log_failures)
    if ok:
        return Success(value, status_code=status_code)

    ok, model = _try_decode(serializer, data, error_model, log_failures)
    return Failure(
        ClientError(ClientErrorKind.PARSING_ERROR, status_code=status_code, model=model if ok else None)
    )
