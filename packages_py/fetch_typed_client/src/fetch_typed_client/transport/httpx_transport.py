"""
Default transport over httpx.AsyncClient.
"""
import asyncio
import itertools
import logging
import threading
from typing import AsyncIterator, Dict, Optional

import httpx

from ..errors import StreamStatusError
from ..types import (
    ExchangeId,
    RequestDescriptor,
    StreamFraming,
    TimeoutConfig,
    TransportResponse,
)
from ..streaming.ndjson_reader import iter_ndjson_fragments
from ..streaming.sse_reader import iter_sse_fragments
from .base import Transport

logger = logging.getLogger("fetch_typed_client.httpx_transport")

# Errors classified as transport failures; anything else propagates from send()
TRANSPORT_ERRORS = (httpx.HTTPError, httpx.InvalidURL)


def to_httpx_timeout(timeout: TimeoutConfig) -> httpx.Timeout:
    return httpx.Timeout(
        connect=timeout.connect,
        read=timeout.read,
        write=timeout.write,
        pool=timeout.connect,
    )


def frame_stream(body: AsyncIterator[bytes], framing: StreamFraming) -> AsyncIterator[bytes]:
    """Split a streamed body into fragments for the given framing."""
    if framing == "ndjson":
        return iter_ndjson_fragments(body)
    if framing == "sse":
        return iter_sse_fragments(body)
    if framing == "chunk":
        return body
    raise ValueError(f"Unknown stream framing: {framing}")


class HttpxTransport(Transport):
    """Transport performing requests with an httpx.AsyncClient.

    Streaming exchanges run as tasks on the loop that calls resume().
    """

    def __init__(
        self,
        timeout: Optional[TimeoutConfig] = None,
        verify: bool = True,
        framing: StreamFraming = "ndjson",
        httpx_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__()
        self._framing = framing
        if httpx_client is not None:
            self._client = httpx_client
        else:
            self._client = httpx.AsyncClient(
                timeout=to_httpx_timeout(timeout or TimeoutConfig()),
                verify=verify,
            )
        self._ids = itertools.count(1)
        self._pending: Dict[ExchangeId, RequestDescriptor] = {}
        self._tasks: Dict[ExchangeId, asyncio.Task] = {}
        self._lock = threading.Lock()

    @property
    def framing(self) -> StreamFraming:
        return self._framing

    async def send(self, request: RequestDescriptor) -> TransportResponse:
        logger.debug(f"HttpxTransport.send: method={request.method}, url={request.url}")
        try:
            response = await self._client.request(
                method=request.method,
                url=request.url,
                headers=dict(request.headers),
                content=request.body,
                timeout=to_httpx_timeout(request.timeout),
            )
        except TRANSPORT_ERRORS as e:
            logger.debug(f"HttpxTransport.send: {type(e).__name__}: {e}")
            return TransportResponse(error=e)

        logger.debug(f"HttpxTransport.send: status={response.status_code}, bytes={len(response.content)}")
        return TransportResponse(
            status_code=response.status_code,
            body=response.content or None,
            headers=dict(response.headers),
        )

    def open_stream(self, request: RequestDescriptor) -> ExchangeId:
        with self._lock:
            exchange_id = next(self._ids)
            self._pending[exchange_id] = request
        logger.debug(f"HttpxTransport.open_stream: exchange_id={exchange_id}, url={request.url}")
        return exchange_id

    def resume(self, exchange_id: ExchangeId) -> None:
        with self._lock:
            request = self._pending.pop(exchange_id, None)
        if request is None:
            logger.debug(f"HttpxTransport.resume: exchange_id={exchange_id} not pending")
            return

        task = asyncio.get_running_loop().create_task(self._run_stream(exchange_id, request))
        with self._lock:
            self._tasks[exchange_id] = task

    def cancel(self, exchange_id: ExchangeId) -> None:
        with self._lock:
            self._pending.pop(exchange_id, None)
            task = self._tasks.pop(exchange_id, None)
        if task is not None and not task.done():
            logger.debug(f"HttpxTransport.cancel: exchange_id={exchange_id}")
            # Cancellation may arrive from any thread; the task belongs to its loop
            task.get_loop().call_soon_threadsafe(task.cancel)

    async def _run_stream(self, exchange_id: ExchangeId, request: RequestDescriptor) -> None:
        error: Optional[BaseException] = None
        try:
            async with self._client.stream(
                method=request.method,
                url=request.url,
                headers=dict(request.headers),
                content=request.body,
                timeout=to_httpx_timeout(request.timeout),
            ) as response:
                if not (200 <= response.status_code <= 299):
                    body = await response.aread()
                    error = StreamStatusError(response.status_code, body or None)
                else:
                    async for fragment in frame_stream(response.aiter_bytes(), self._framing):
                        if self._listener is not None:
                            self._listener.dispatch_fragment(exchange_id, fragment)
        except asyncio.CancelledError:
            logger.debug(f"HttpxTransport._run_stream: exchange_id={exchange_id} cancelled")
            raise
        except TRANSPORT_ERRORS as e:
            logger.debug(f"HttpxTransport._run_stream: exchange_id={exchange_id} {type(e).__name__}: {e}")
            error = e
        except Exception as e:
            logger.error(f"HttpxTransport._run_stream: exchange_id={exchange_id} failed: {type(e).__name__}: {e}")
            error = e
        finally:
            with self._lock:
                self._tasks.pop(exchange_id, None)

        if self._listener is not None:
            self._listener.complete(exchange_id, error)

    async def close(self) -> None:
        with self._lock:
            tasks = list(self._tasks.values())
            self._tasks.clear()
            self._pending.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        await self._client.aclose()
