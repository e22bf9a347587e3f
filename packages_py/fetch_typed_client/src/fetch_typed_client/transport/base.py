"""
Transport interface for fetch_typed_client.

A transport performs network I/O only. Single-shot exchanges return a
TransportResponse; streaming exchanges report to a bound StreamListener by
exchange id and never hold a reference to the client.
"""
from abc import ABC, abstractmethod
from typing import Optional

from ..types import ExchangeId, RequestDescriptor, StreamListener, TransportResponse


class Transport(ABC):
    """Abstract transport."""

    def __init__(self) -> None:
        self._listener: Optional[StreamListener] = None

    @property
    def listener(self) -> Optional[StreamListener]:
        return self._listener

    def bind(self, listener: StreamListener) -> None:
        """Set the receiver of streaming fragments and completions."""
        self._listener = listener

    @abstractmethod
    async def send(self, request: RequestDescriptor) -> TransportResponse:
        """Perform a single-shot exchange.

        Network failures are reported in TransportResponse.error, not raised.
        """
        ...

    @abstractmethod
    def open_stream(self, request: RequestDescriptor) -> ExchangeId:
        """Prepare a streaming exchange without starting it."""
        ...

    @abstractmethod
    def resume(self, exchange_id: ExchangeId) -> None:
        """Start delivery for a prepared exchange."""
        ...

    @abstractmethod
    def cancel(self, exchange_id: ExchangeId) -> None:
        """Abort a streaming exchange. Unknown ids are ignored."""
        ...

    async def close(self) -> None:
        """Release transport resources."""
        return None
