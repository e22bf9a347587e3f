"""
Factory functions for creating typed fetch clients.
"""
from typing import Optional, Union

import httpx

from .config import DEFAULT_CONTENT_TYPE, ClientConfig, LoggingConfig
from .core.base_client import TypedFetchClient
from .transport.base import Transport
from .types import AuthStrategy, NoAuth, Serializer, StreamFraming, TimeoutConfig


def create_client(
    base_url: str,
    auth: Optional[AuthStrategy] = None,
    timeout: Optional[Union[float, TimeoutConfig]] = None,
    default_headers: Optional[dict[str, str]] = None,
    content_type: str = DEFAULT_CONTENT_TYPE,
    serializer: Optional[Serializer] = None,
    logging: Optional[LoggingConfig] = None,
    stream_framing: StreamFraming = "ndjson",
    verify_ssl: Optional[bool] = None,
    httpx_client: Optional[httpx.AsyncClient] = None,
    transport: Optional[Transport] = None,
) -> TypedFetchClient:
    """
    Create a typed fetch client with the given configuration.

    Args:
        base_url: Base URL for all requests.
        auth: Authentication strategy, NoAuth when omitted.
        timeout: Request timeout (seconds or TimeoutConfig).
        default_headers: Common headers, merged over the Content-Type default.
        content_type: Default Content-Type header.
        serializer: Custom serializer.
        logging: Console logging toggles.
        stream_framing: Framing of streamed bodies ("ndjson", "sse" or "chunk").
        verify_ssl: TLS verification, None to follow the environment.
        httpx_client: Pre-configured httpx.AsyncClient for the default transport.
        transport: Custom transport, replaces the default one.

    Example:
        client = create_client(
            base_url="https://api.example.com",
            auth=BearerAuth("secret"),
        )
    """
    headers = {"Content-Type": content_type}
    headers.update(default_headers or {})

    config = ClientConfig(
        base_url=base_url,
        auth=auth or NoAuth(),
        headers=headers,
        timeout=timeout,
        serializer=serializer,
        logging=logging or LoggingConfig(),
        stream_framing=stream_framing,
        verify_ssl=verify_ssl,
    )
    return TypedFetchClient(config, transport=transport, httpx_client=httpx_client)
