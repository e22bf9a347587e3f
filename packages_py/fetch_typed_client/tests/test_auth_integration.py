"""
Integration tests for Authentication Flow
Verifies the path: Client -> Config -> Auth Strategy -> Request Builder -> Transport
"""
import base64

import httpx
import pytest
import respx
from httpx import Response

from fetch_typed_client.config import ClientConfig, LoggingConfig
from fetch_typed_client.core.base_client import TypedFetchClient
from fetch_typed_client.errors import ClientErrorKind
from fetch_typed_client.types import ApiKeyAuth, BasicAuth, BearerAuth, Placement

QUIET = LoggingConfig(log_requests=False, log_responses=False)


def make_client(router, auth):
    config = ClientConfig(base_url="https://api.example.com", auth=auth, logging=QUIET, verify_ssl=True)
    mock_httpx_client = httpx.AsyncClient(transport=httpx.MockTransport(router.async_handler))
    return TypedFetchClient(config, httpx_client=mock_httpx_client)


@pytest.mark.asyncio
async def test_auth_flow_integration_basic():
    """
    A client configured with Basic auth encodes the credentials into the
    Authorization header.
    """
    router = respx.MockRouter()
    route = router.get("https://api.example.com/resource").mock(return_value=Response(200, json={"status": "ok"}))

    async with make_client(router, BasicAuth("testuser", "testpassword")) as client:
        assert await client.get("/resource") == {"status": "ok"}

    assert route.called
    expected = base64.b64encode(b"testuser:testpassword").decode("ascii")
    assert route.calls.last.request.headers["Authorization"] == f"Basic {expected}"


@pytest.mark.asyncio
async def test_auth_flow_integration_bearer():
    """
    A client configured with Bearer auth sends the token unchanged.
    """
    router = respx.MockRouter()
    route = router.get("https://api.example.com/resource").mock(return_value=Response(204))

    async with make_client(router, BearerAuth("my-secret-token")) as client:
        assert await client.get("/resource") is None

    assert route.calls.last.request.headers["Authorization"] == "Bearer my-secret-token"


@pytest.mark.asyncio
async def test_auth_flow_integration_api_key_url():
    """
    An API key placed in the URL travels as a query parameter and never as a
    header.
    """
    router = respx.MockRouter()
    route = router.get("https://api.example.com/resource").mock(return_value=Response(204))

    async with make_client(router, ApiKeyAuth("api_key", "k-123", Placement.URL)) as client:
        await client.get("/resource", query={"page": 2})

    request = route.calls.last.request
    assert request.url.params["api_key"] == "k-123"
    assert request.url.params["page"] == "2"
    assert str(request.url).endswith("?page=2&api_key=k-123")
    assert "api_key" not in request.headers


@pytest.mark.asyncio
async def test_auth_flow_integration_api_key_body_rejected():
    """
    An API key placed in the body is rejected before any network call.
    """
    router = respx.MockRouter()
    route = router.get("https://api.example.com/resource").mock(return_value=Response(204))

    async with make_client(router, ApiKeyAuth("api_key", "k-123", Placement.BODY)) as client:
        outcome = await client.execute("/resource")

    assert outcome.error.kind is ClientErrorKind.INVALID_REQUEST
    assert not route.called
