"""
Shared fixtures for fetch_typed_client tests.
"""
import io
from typing import Callable

import httpx
import pytest
from rich.console import Console

from fetch_typed_client.config import ClientConfig, LoggingConfig
from fetch_typed_client.core.base_client import TypedFetchClient
from fetch_typed_client.transport.httpx_transport import HttpxTransport

BASE_URL = "https://api.example.com"


@pytest.fixture
def console_buffer():
    """Console writing into a string buffer."""
    buffer = io.StringIO()
    return buffer, Console(file=buffer, force_terminal=False, width=120)


@pytest.fixture
def logging_config(console_buffer):
    """LoggingConfig routed to the buffered console."""
    _, console = console_buffer
    return LoggingConfig(console=console)


@pytest.fixture
def client_config(logging_config):
    """Sample ClientConfig for testing."""
    return ClientConfig(base_url=BASE_URL, logging=logging_config, verify_ssl=True)


@pytest.fixture
def make_client(client_config) -> Callable[..., TypedFetchClient]:
    """Build a client whose httpx client answers through handler."""

    def _make(handler, config: ClientConfig = None, framing: str = "ndjson") -> TypedFetchClient:
        config = config or client_config
        httpx_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        transport = HttpxTransport(framing=framing, httpx_client=httpx_client)
        return TypedFetchClient(config, transport=transport)

    return _make
