"""
Tests for exchange_registry.py
Logic testing: State Transition, Decision/Branch, Concurrency coverage
"""
import json
import threading
from unittest.mock import MagicMock

import pytest

from fetch_typed_client.errors import DuplicateExchangeError
from fetch_typed_client.streaming.exchange_registry import ExchangeRegistry
from fetch_typed_client.types import ExchangeState


@pytest.fixture
def canceller():
    return MagicMock()


@pytest.fixture
def registry(canceller):
    return ExchangeRegistry(canceller=canceller)


def register(registry, exchange_id=1, on_decode_error=None):
    on_fragment = MagicMock()
    on_complete = MagicMock()
    registry.register(exchange_id, on_fragment, on_complete, json.loads, on_decode_error)
    return on_fragment, on_complete


class TestRegister:
    """Tests for register."""

    # Happy Path: registered state
    def test_register(self, registry):
        register(registry)
        assert 1 in registry
        assert len(registry) == 1
        assert registry.state(1) is ExchangeState.REGISTERED
        assert registry.ids() == [1]

    # Error Path: duplicate id
    def test_duplicate(self, registry):
        register(registry)
        with pytest.raises(DuplicateExchangeError):
            register(registry)


class TestDispatchFragment:
    """Tests for dispatch_fragment."""

    # Happy Path: decoded value reaches consumer
    def test_dispatch(self, registry):
        on_fragment, on_complete = register(registry)
        registry.dispatch_fragment(1, b'{"n":1}')
        on_fragment.assert_called_once_with({"n": 1})
        on_complete.assert_not_called()
        assert registry.state(1) is ExchangeState.ACTIVE

    # Loop: order preserved
    def test_order(self, registry):
        received = []
        registry.register(1, received.append, MagicMock(), json.loads)
        for n in range(3):
            registry.dispatch_fragment(1, json.dumps({"n": n}).encode())
        assert received == [{"n": 0}, {"n": 1}, {"n": 2}]

    # Boundary: unknown id is a no-op
    def test_unknown_id(self, registry):
        registry.dispatch_fragment(99, b"{}")

    # Error Path: decode failure isolated
    def test_decode_failure(self, registry, caplog):
        on_decode_error = MagicMock()
        on_fragment, on_complete = register(registry, on_decode_error=on_decode_error)

        registry.dispatch_fragment(1, b"not json")
        registry.dispatch_fragment(1, b'{"ok":true}')

        on_decode_error.assert_called_once()
        error, raw = on_decode_error.call_args.args
        assert isinstance(error, ValueError)
        assert raw == b"not json"
        on_fragment.assert_called_once_with({"ok": True})
        on_complete.assert_not_called()
        assert any("Chunk parsing error" in r.getMessage() for r in caplog.records)


    # Error Path: raising consumer callbacks are logged, not propagated
    def test_raising_consumer(self, registry, caplog):
        on_complete = MagicMock()
        on_decode_error = MagicMock(side_effect=RuntimeError("decode hook failed"))
        on_fragment = MagicMock(side_effect=ValueError("consumer failed"))
        registry.register(1, on_fragment, on_complete, json.loads, on_decode_error)

        registry.dispatch_fragment(1, b"{}")
        registry.dispatch_fragment(1, b"not json")
        registry.dispatch_fragment(1, b"[]")

        assert on_fragment.call_count == 2
        on_decode_error.assert_called_once()
        assert registry.state(1) is ExchangeState.ACTIVE
        messages = [r.getMessage() for r in caplog.records]
        assert any("consumer failed" in m for m in messages)
        assert any("decode hook failed" in m for m in messages)

        assert registry.complete(1) is True
        on_complete.assert_called_once_with(None)

class TestComplete:
    """Tests for complete."""

    # State: clean completion
    def test_complete(self, registry):
        on_fragment, on_complete = register(registry)
        assert registry.complete(1) is True
        on_complete.assert_called_once_with(None)
        assert 1 not in registry
        assert registry.state(1) is None

    # State: failure
    def test_complete_with_error(self, registry):
        _, on_complete = register(registry)
        error = RuntimeError("boom")
        registry.complete(1, error)
        on_complete.assert_called_once_with(error)

    # State: terminal states are absorbing
    def test_complete_twice(self, registry):
        on_fragment, on_complete = register(registry)
        registry.complete(1)
        assert registry.complete(1) is False
        registry.dispatch_fragment(1, b"{}")
        on_complete.assert_called_once()
        on_fragment.assert_not_called()

    # Error Path: raising completion still removes the entry
    def test_complete_raising_consumer(self, registry):
        registry.register(1, MagicMock(), MagicMock(side_effect=ValueError("boom")), json.loads)
        assert registry.complete(1) is True
        assert 1 not in registry

    # State: id reusable after removal
    def test_reregister_after_complete(self, registry):
        register(registry)
        registry.complete(1)
        register(registry)
        assert 1 in registry


class TestCancel:
    """Tests for cancel."""

    # State: no fragment after cancel
    def test_cancel(self, registry, canceller):
        on_fragment, on_complete = register(registry)
        assert registry.cancel(1) is True
        registry.dispatch_fragment(1, b"{}")
        registry.complete(1)

        on_fragment.assert_not_called()
        on_complete.assert_not_called()
        canceller.assert_called_once_with(1)
        assert 1 not in registry

    # Path: idempotent
    def test_double_cancel(self, registry, canceller):
        register(registry)
        registry.cancel(1)
        assert registry.cancel(1) is False
        canceller.assert_called_once_with(1)

    # Boundary: unknown id
    def test_cancel_unknown(self, registry, canceller):
        assert registry.cancel(42) is False
        canceller.assert_not_called()

    # Path: cancel after completion does not reach transport
    def test_cancel_after_complete(self, registry, canceller):
        register(registry)
        registry.complete(1)
        assert registry.cancel(1) is False
        canceller.assert_not_called()

    # Path: cancel from inside the fragment callback
    def test_cancel_from_callback(self, canceller):
        registry = ExchangeRegistry(canceller=canceller)
        received = []

        def on_fragment(value):
            received.append(value)
            registry.cancel(1)

        registry.register(1, on_fragment, MagicMock(), json.loads)
        registry.dispatch_fragment(1, b"1")
        registry.dispatch_fragment(1, b"2")

        assert received == [1]
        canceller.assert_called_once_with(1)

    # Path: registry without canceller
    def test_cancel_without_canceller(self):
        registry = ExchangeRegistry()
        register(registry)
        assert registry.cancel(1) is True


class TestConcurrency:
    """Distinct exchanges from many threads."""

    def test_parallel_exchanges(self, registry):
        results = {i: [] for i in range(8)}
        completed = []
        for i in range(8):
            registry.register(i, results[i].append, completed.append, json.loads)

        def worker(exchange_id):
            for n in range(50):
                registry.dispatch_fragment(exchange_id, str(n).encode())
            registry.complete(exchange_id)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert all(values == list(range(50)) for values in results.values())
        assert completed == [None] * 8
        assert len(registry) == 0

    def test_cancel_races_dispatch(self, registry):
        received = []
        registry.register(1, received.append, MagicMock(), json.loads)

        def dispatcher():
            for n in range(1000):
                registry.dispatch_fragment(1, str(n).encode())

        thread = threading.Thread(target=dispatcher)
        thread.start()
        registry.cancel(1)
        count_at_cancel = len(received)
        thread.join()

        assert len(received) == count_at_cancel
