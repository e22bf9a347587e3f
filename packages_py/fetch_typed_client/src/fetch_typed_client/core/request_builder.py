"""
Request builder utilities for fetch_typed_client.
"""
import logging
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlencode, urljoin, urlparse

from ..auth.auth_handler import create_auth_handler
from ..config import DefaultSerializer
from ..errors import RequestBuildError
from ..types import (
    HTTP_METHODS,
    AuthStrategy,
    BodySpec,
    EncodableBody,
    HttpMethod,
    JsonBody,
    QuerySpec,
    RawBody,
    RequestDescriptor,
    Serializer,
    TimeoutConfig,
)

logger = logging.getLogger("fetch_typed_client.request_builder")


def _query_pairs(query: Optional[QuerySpec]) -> List[Tuple[str, str]]:
    """Flatten a query spec into ordered (name, value) pairs."""
    if not query:
        return []
    items = query.items() if isinstance(query, Mapping) else query
    return [(str(k), str(v)) for k, v in items]


def build_url(
    base_url: str,
    path: str,
    query: Optional[QuerySpec] = None,
) -> str:
    """Build full URL from base and path."""
    parsed = urlparse(base_url)
    if not parsed.scheme or not parsed.netloc:
        raise RequestBuildError(f"Invalid base_url: {base_url!r}")

    if path.startswith(("http://", "https://")):
        # Absolute endpoint replaces the base
        url = path
    elif path.startswith("/"):
        # Combine base path with the new path (avoid double slashes)
        base_path = parsed.path.rstrip("/")
        url = f"{parsed.scheme}://{parsed.netloc}{base_path}{path}"
    elif path:
        # urljoin replaces the last segment if base doesn't end with /
        if not base_url.endswith("/"):
            base_url = base_url + "/"
        url = urljoin(base_url, path)
    else:
        url = base_url

    pairs = _query_pairs(query)
    if pairs:
        query_str = urlencode(pairs)
        separator = "&" if "?" in url else "?"
        url = f"{url}{separator}{query_str}"

    return url


def merge_headers(target: Dict[str, str], overrides: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Merge overrides into target, last write wins, names compared case-insensitively."""
    if not overrides:
        return target
    for key, value in overrides.items():
        for existing in [k for k in target if k.lower() == key.lower()]:
            del target[existing]
        target[key] = value
    return target


def build_headers(
    common_headers: Optional[Mapping[str, str]] = None,
    headers: Optional[Mapping[str, str]] = None,
    auth_headers: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Build request headers: common, then per-call, then auth."""
    result: Dict[str, str] = {}
    merge_headers(result, common_headers)
    merge_headers(result, headers)

    # Set accept header if not specified
    if "accept" not in {k.lower() for k in result}:
        result["Accept"] = "application/json"

    merge_headers(result, auth_headers)
    return result


def build_body(
    body: Optional[BodySpec],
    serializer: Serializer,
) -> Optional[bytes]:
    """Encode a body spec to bytes."""
    if body is None:
        return None

    if isinstance(body, RawBody):
        return bytes(body.data)

    try:
        if isinstance(body, JsonBody):
            return serializer.encode(dict(body.fields))
        if isinstance(body, EncodableBody):
            return (body.encoder or serializer).encode(body.value)
    except Exception as e:
        logger.error(f"build_body: unable to encode {type(body).__name__}: {e}")
        raise RequestBuildError(f"Unable to encode request body: {e}") from e

    raise TypeError(f"Unknown body spec: {type(body).__name__}")


def build_request(
    base_url: str,
    endpoint: str,
    method: HttpMethod = "GET",
    common_headers: Optional[Mapping[str, str]] = None,
    headers: Optional[Mapping[str, str]] = None,
    query: Optional[QuerySpec] = None,
    body: Optional[BodySpec] = None,
    auth: Optional[AuthStrategy] = None,
    timeout: Optional[TimeoutConfig] = None,
    serializer: Optional[Serializer] = None,
) -> RequestDescriptor:
    """Build an immutable request descriptor.

    Raises:
        RequestBuildError: bad URL, unsupported method, body encoding failure
            or unsupported auth placement.
    """
    method_name = str(method).upper()
    if method_name not in HTTP_METHODS:
        raise RequestBuildError(f"Unsupported method: {method!r}")

    handler = create_auth_handler(auth)
    # Body injection is a reserved extension point; unsupported placements raise here
    handler.get_body_fields()

    query_pairs = _query_pairs(query) + _query_pairs(handler.get_query())
    url = build_url(base_url, endpoint, query_pairs)

    request_headers = build_headers(common_headers, headers, handler.get_header())

    request_body = build_body(body, serializer or DefaultSerializer())

    logger.debug(f"build_request: method={method_name}, url={url}, has_body={request_body is not None}")

    return RequestDescriptor(
        url=url,
        method=method_name,
        headers=MappingProxyType(request_headers),
        body=request_body,
        timeout=timeout or TimeoutConfig(),
    )
