"""
Typed HTTP client facade.

One canonical coroutine, execute(), builds the request, sends it over the
transport and resolves the response. The callback, awaitable and streaming
shapes are thin adapters over it and always agree on the outcome.
"""
import asyncio
import logging
from typing import Any, AsyncGenerator, Callable, Dict, Optional, Tuple, Union

import httpx

from ..config import ClientConfig, ResolvedConfig, normalize_timeout, resolve_config
from ..console import ConsoleLogger
from ..errors import (
    ClientError,
    ClientErrorKind,
    DuplicateExchangeError,
    RequestBuildError,
    StreamStatusError,
)
from ..streaming.exchange_registry import DecodeErrorCallback, ExchangeRegistry
from ..transport.base import Transport
from ..transport.httpx_transport import HttpxTransport
from ..types import (
    ApiKeyAuth,
    AuthStrategy,
    BodySpec,
    CompletionCallback,
    ExchangeId,
    Failure,
    FragmentCallback,
    HttpMethod,
    Outcome,
    Placement,
    QuerySpec,
    RequestDescriptor,
    ResultCallback,
    StreamCompleteCallback,
    Success,
    TimeoutConfig,
)
from .request_builder import build_request
from .response_resolver import resolve_response

logger = logging.getLogger("fetch_typed_client.base_client")

Endpoint = Union[str, RequestDescriptor, None]

_FRAGMENT = "fragment"
_COMPLETE = "complete"


def outcome_pair(outcome: Outcome) -> Tuple[Optional[Any], Optional[ClientError]]:
    """Split an outcome into the (value, error) pair of the dual-optional callback."""
    if isinstance(outcome, Success):
        return outcome.value, None
    return None, outcome.error


class TypedFetchClient:
    """Typed asynchronous HTTP client.

    Example:
        client = TypedFetchClient(ClientConfig(base_url="https://api.example.com"))
        token = await client.post("/login", body=JsonBody({"user": "x"}), response_model=Token)
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: Optional[Transport] = None,
        httpx_client: Optional[httpx.AsyncClient] = None,
    ):
        self._config = resolve_config(config)
        self.auth: AuthStrategy = self._config.auth
        self.headers: Dict[str, str] = dict(self._config.headers)
        self._console = ConsoleLogger(self._config.logging, self._config.console)

        if transport is None:
            transport = HttpxTransport(
                timeout=self._config.timeout,
                verify=self._config.verify_ssl,
                framing=self._config.stream_framing,
                httpx_client=httpx_client,
            )
        self._transport = transport
        self._registry = ExchangeRegistry(canceller=transport.cancel)
        transport.bind(self._registry)
        self._closed = False

    @property
    def config(self) -> ResolvedConfig:
        return self._config

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def registry(self) -> ExchangeRegistry:
        return self._registry

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("Client has been closed")

    def _sensitive_names(self) -> Tuple[str, ...]:
        # The API key may travel under any header or query name
        if isinstance(self.auth, ApiKeyAuth) and self.auth.placement is not Placement.BODY:
            return (self.auth.key,)
        return ()

    def _build(
        self,
        endpoint: Union[str, RequestDescriptor],
        method: HttpMethod,
        headers: Optional[Dict[str, str]],
        query: Optional[QuerySpec],
        body: Optional[BodySpec],
        timeout: Union[TimeoutConfig, float, None],
    ) -> RequestDescriptor:
        if isinstance(endpoint, RequestDescriptor):
            return endpoint
        return build_request(
            self._config.base_url,
            endpoint,
            method=method,
            common_headers=self.headers,
            headers=headers,
            query=query,
            body=body,
            auth=self.auth,
            timeout=normalize_timeout(timeout) if timeout is not None else self._config.timeout,
            serializer=self._config.serializer,
        )

    async def execute(
        self,
        endpoint: Endpoint,
        *,
        method: HttpMethod = "GET",
        headers: Optional[Dict[str, str]] = None,
        query: Optional[QuerySpec] = None,
        body: Optional[BodySpec] = None,
        timeout: Union[TimeoutConfig, float, None] = None,
        response_model: Any = None,
        error_model: Any = None,
    ) -> Outcome:
        """
        Perform one exchange and resolve it.

        Returns:
            Success with the decoded value (None for a 2xx without body), or
            Failure carrying a ClientError. Never raises for request or
            response problems.
        """
        self._check_open()

        if endpoint is None:
            return Failure(ClientError(ClientErrorKind.INVALID_RESPONSE))

        try:
            request = self._build(endpoint, method, headers, query, body, timeout)
        except RequestBuildError as e:
            logger.debug(f"TypedFetchClient.execute: request build failed: {e}")
            return Failure(ClientError(ClientErrorKind.INVALID_REQUEST, cause=e))

        logger.debug(f"TypedFetchClient.execute: method={request.method}, url={request.url}")
        self._console.request(request, self._sensitive_names())

        response = await self._transport.send(request)

        self._console.response(
            request.url, response.status_code, response.body, response.error, self._sensitive_names()
        )
        return resolve_response(
            response.status_code,
            response.body,
            response.error,
            serializer=self._config.serializer,
            response_model=response_model,
            error_model=error_model,
            log_failures=self._config.logging.log_responses,
        )

    def submit(self, endpoint: Endpoint, **kwargs: Any) -> "asyncio.Task[Outcome]":
        """Schedule execute() as a cancellable task on the running loop."""
        self._check_open()
        return asyncio.get_running_loop().create_task(self.execute(endpoint, **kwargs))

    def _deliver(self, endpoint: Endpoint, kwargs: Dict[str, Any], deliver: Callable[[Outcome], None]) -> "asyncio.Task[Outcome]":
        task = self.submit(endpoint, **kwargs)

        def _on_done(done: "asyncio.Task[Outcome]") -> None:
            if done.cancelled():
                return
            error = done.exception()
            if error is not None:
                logger.error(f"TypedFetchClient: exchange raised {type(error).__name__}: {error}")
                return
            deliver(done.result())

        task.add_done_callback(_on_done)
        return task

    def perform(self, endpoint: Endpoint, completion: CompletionCallback, **kwargs: Any) -> "asyncio.Task[Outcome]":
        """Call completion(value, None) or completion(None, error) when done."""
        return self._deliver(endpoint, kwargs, lambda outcome: completion(*outcome_pair(outcome)))

    def perform_result(self, endpoint: Endpoint, completion: ResultCallback, **kwargs: Any) -> "asyncio.Task[Outcome]":
        """Call completion(Success | Failure) when done."""
        return self._deliver(endpoint, kwargs, completion)

    async def fetch(self, endpoint: Endpoint, *, require_body: bool = False, **kwargs: Any) -> Any:
        """
        Perform one exchange and return the decoded value.

        Raises:
            ClientError: on any failure, and for a 2xx without body when
                require_body is set.
        """
        outcome = await self.execute(endpoint, **kwargs)
        if isinstance(outcome, Failure):
            raise outcome.error
        if outcome.value is None and require_body:
            raise ClientError(ClientErrorKind.INVALID_RESPONSE, status_code=outcome.status_code)
        return outcome.value

    async def get(self, endpoint: Endpoint, **kwargs: Any) -> Any:
        """GET request."""
        return await self.fetch(endpoint, method="GET", **kwargs)

    async def post(self, endpoint: Endpoint, **kwargs: Any) -> Any:
        """POST request."""
        return await self.fetch(endpoint, method="POST", **kwargs)

    async def put(self, endpoint: Endpoint, **kwargs: Any) -> Any:
        """PUT request."""
        return await self.fetch(endpoint, method="PUT", **kwargs)

    async def delete(self, endpoint: Endpoint, **kwargs: Any) -> Any:
        """DELETE request."""
        return await self.fetch(endpoint, method="DELETE", **kwargs)

    async def fetch_data(self, url: str) -> bytes:
        """GET an absolute URL and return the raw body, without auth or decoding."""
        self._check_open()
        request = RequestDescriptor(url=url, method="GET", timeout=self._config.timeout)
        response = await self._transport.send(request)
        if response.error is not None:
            raise ClientError(ClientErrorKind.TRANSPORT_ERROR, cause=response.error)
        if response.status_code is None:
            raise ClientError(ClientErrorKind.INVALID_RESPONSE)
        return response.body or b""

    def _stream_error(self, error: Optional[BaseException], error_model: Any) -> Optional[ClientError]:
        if error is None:
            return None
        if isinstance(error, ClientError):
            return error
        if isinstance(error, StreamStatusError):
            outcome = resolve_response(
                error.status_code,
                error.body,
                None,
                serializer=self._config.serializer,
                error_model=error_model,
                log_failures=self._config.logging.log_responses,
            )
            if isinstance(outcome, Failure):
                return outcome.error
            return ClientError(ClientErrorKind.INVALID_RESPONSE, status_code=error.status_code)
        return ClientError(ClientErrorKind.TRANSPORT_ERROR, cause=error)

    def open_stream(
        self,
        endpoint: Endpoint,
        on_fragment: FragmentCallback,
        on_complete: StreamCompleteCallback,
        *,
        method: HttpMethod = "GET",
        headers: Optional[Dict[str, str]] = None,
        query: Optional[QuerySpec] = None,
        body: Optional[BodySpec] = None,
        timeout: Union[TimeoutConfig, float, None] = None,
        response_model: Any = None,
        error_model: Any = None,
        on_decode_error: Optional[DecodeErrorCallback] = None,
    ) -> Optional[ExchangeId]:
        """
        Start a streaming exchange delivering decoded fragments to on_fragment.

        on_complete receives None on clean completion or a ClientError.
        Fragments that fail to decode are logged and skipped.

        Returns:
            The exchange id, or None when the request could not be built
            (on_complete has then already been called with the error).

        Raises:
            DuplicateExchangeError: the transport reused a registered id.
        """
        self._check_open()

        if endpoint is None:
            on_complete(ClientError(ClientErrorKind.INVALID_RESPONSE))
            return None

        try:
            request = self._build(endpoint, method, headers, query, body, timeout)
        except RequestBuildError as e:
            logger.debug(f"TypedFetchClient.open_stream: request build failed: {e}")
            on_complete(ClientError(ClientErrorKind.INVALID_REQUEST, cause=e))
            return None

        self._console.request(request, self._sensitive_names())
        serializer = self._config.serializer
        exchange_id = self._transport.open_stream(request)

        def decode(data: bytes) -> Any:
            self._console.fragment(exchange_id, data)
            return serializer.decode(data, response_model)

        def finish(error: Optional[BaseException]) -> None:
            on_complete(self._stream_error(error, error_model))

        try:
            self._registry.register(exchange_id, on_fragment, finish, decode, on_decode_error)
        except DuplicateExchangeError:
            self._transport.cancel(exchange_id)
            raise
        self._transport.resume(exchange_id)
        logger.debug(f"TypedFetchClient.open_stream: exchange_id={exchange_id}, url={request.url}")
        return exchange_id

    def cancel_stream(self, exchange_id: ExchangeId) -> bool:
        """Cancel a streaming exchange. No callback fires for it afterwards."""
        return self._registry.cancel(exchange_id)

    async def stream(self, endpoint: Endpoint, **kwargs: Any) -> AsyncGenerator[Any, None]:
        """
        Stream decoded fragments of one exchange.

        Ends on clean completion and raises ClientError on failure. Leaving
        the iteration early cancels the exchange.
        """
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue()

        def on_fragment(value: Any) -> None:
            loop.call_soon_threadsafe(queue.put_nowait, (_FRAGMENT, value))

        def on_complete(error: Optional[BaseException]) -> None:
            loop.call_soon_threadsafe(queue.put_nowait, (_COMPLETE, error))

        exchange_id = self.open_stream(endpoint, on_fragment, on_complete, **kwargs)
        try:
            while True:
                kind, payload = await queue.get()
                if kind == _COMPLETE:
                    if payload is not None:
                        raise payload
                    return
                yield payload
        finally:
            if exchange_id is not None:
                self.cancel_stream(exchange_id)

    async def close(self) -> None:
        """Close the client. Open streams complete with a transport error."""
        if self._closed:
            return
        self._closed = True
        for exchange_id in self._registry.ids():
            self._registry.complete(exchange_id, RuntimeError("Client has been closed"))
        await self._transport.close()

    async def __aenter__(self) -> "TypedFetchClient":
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context manager."""
        await self.close()
