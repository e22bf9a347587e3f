"""
Registry of in-flight streaming exchanges.

The transport reports fragments and completions by exchange id; the registry
routes them to the consumer registered for that id, decoding each fragment on
its own. Entries are removed exactly once, on completion or cancellation.
"""
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..errors import DuplicateExchangeError
from ..types import (
    ExchangeId,
    ExchangeState,
    FragmentCallback,
    StreamCompleteCallback,
)

logger = logging.getLogger("fetch_typed_client.exchange_registry")

DecodeErrorCallback = Callable[[BaseException, bytes], None]


@dataclass
class ExchangeHandle:
    """Per-exchange consumer state, owned by the registry."""

    exchange_id: ExchangeId
    on_fragment: FragmentCallback
    on_complete: StreamCompleteCallback
    decode: Callable[[bytes], Any]
    on_decode_error: Optional[DecodeErrorCallback] = None
    state: ExchangeState = ExchangeState.REGISTERED
    fragments: int = 0
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)


class ExchangeRegistry:
    """
    Thread-safe map of exchange id to handle.

    The map itself is guarded by one lock; every operation on a given
    exchange, including the consumer callback it triggers, runs under that
    exchange's own re-entrant lock. Once cancel() or complete() has returned,
    no further callback fires for the id.
    """

    def __init__(self, canceller: Optional[Callable[[ExchangeId], None]] = None):
        self._canceller = canceller
        self._handles: Dict[ExchangeId, ExchangeHandle] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)

    def __contains__(self, exchange_id: object) -> bool:
        with self._lock:
            return exchange_id in self._handles

    def ids(self) -> List[ExchangeId]:
        """Snapshot of the registered exchange ids."""
        with self._lock:
            return list(self._handles)

    def state(self, exchange_id: ExchangeId) -> Optional[ExchangeState]:
        """Current state, or None once the exchange has been removed."""
        handle = self._get(exchange_id)
        return handle.state if handle else None

    def register(
        self,
        exchange_id: ExchangeId,
        on_fragment: FragmentCallback,
        on_complete: StreamCompleteCallback,
        decode: Callable[[bytes], Any],
        on_decode_error: Optional[DecodeErrorCallback] = None,
    ) -> ExchangeHandle:
        """Register a consumer for exchange_id."""
        handle = ExchangeHandle(
            exchange_id=exchange_id,
            on_fragment=on_fragment,
            on_complete=on_complete,
            decode=decode,
            on_decode_error=on_decode_error,
        )
        with self._lock:
            if exchange_id in self._handles:
                raise DuplicateExchangeError(f"Exchange {exchange_id} is already registered")
            self._handles[exchange_id] = handle
        logger.debug(f"register: exchange_id={exchange_id}")
        return handle

    def dispatch_fragment(self, exchange_id: ExchangeId, data: bytes) -> None:
        """Decode one fragment and hand it to the consumer."""
        handle = self._get(exchange_id)
        if handle is None:
            logger.debug(f"dispatch_fragment: exchange_id={exchange_id} not registered, dropping")
            return

        with handle.lock:
            if handle.state.is_terminal:
                return
            handle.state = ExchangeState.ACTIVE
            handle.fragments += 1

            try:
                value = handle.decode(data)
            except Exception as e:
                # Malformed fragments are isolated; the exchange stays open
                logger.warning(
                    f"Chunk parsing error on exchange {exchange_id}: {type(e).__name__}: {e} "
                    f"(raw={data[:200]!r})"
                )
                if handle.on_decode_error is not None:
                    self._notify(exchange_id, "on_decode_error", handle.on_decode_error, e, data)
                return

            self._notify(exchange_id, "on_fragment", handle.on_fragment, value)

    def complete(self, exchange_id: ExchangeId, error: Optional[BaseException] = None) -> bool:
        """
        Finish an exchange and notify its consumer.

        Returns:
            True if this call finished the exchange, False if it was not
            registered or already terminal.
        """
        handle = self._get(exchange_id)
        if handle is None:
            return False

        with handle.lock:
            if handle.state.is_terminal:
                return False
            handle.state = ExchangeState.FAILED if error is not None else ExchangeState.COMPLETED
            self._remove(exchange_id, handle)
            logger.debug(
                f"complete: exchange_id={exchange_id}, state={handle.state.value}, "
                f"fragments={handle.fragments}"
            )
            self._notify(exchange_id, "on_complete", handle.on_complete, error)
        return True

    def cancel(self, exchange_id: ExchangeId) -> bool:
        """
        Cancel an exchange on behalf of its consumer. Idempotent.

        Returns:
            True if this call cancelled the exchange.
        """
        handle = self._get(exchange_id)
        if handle is None:
            return False

        with handle.lock:
            if handle.state.is_terminal:
                return False
            handle.state = ExchangeState.CANCELLED
            self._remove(exchange_id, handle)

        logger.debug(f"cancel: exchange_id={exchange_id}")
        if self._canceller is not None:
            self._canceller(exchange_id)
        return True

    def _notify(self, exchange_id: ExchangeId, name: str, callback: Callable[..., None], *args: Any) -> None:
        # Consumer failures are reported, never raised into the transport
        try:
            callback(*args)
        except Exception as e:
            logger.error(f"Consumer {name} raised on exchange {exchange_id}: {type(e).__name__}: {e}")

    def _get(self, exchange_id: ExchangeId) -> Optional[ExchangeHandle]:
        with self._lock:
            return self._handles.get(exchange_id)

    def _remove(self, exchange_id: ExchangeId, handle: ExchangeHandle) -> None:
        with self._lock:
            if self._handles.get(exchange_id) is handle:
                del self._handles[exchange_id]
