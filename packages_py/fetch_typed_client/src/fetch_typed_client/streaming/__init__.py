"""
Streaming support for fetch_typed_client.
"""
from .exchange_registry import ExchangeHandle, ExchangeRegistry
from .ndjson_reader import encode_ndjson, iter_ndjson_fragments
from .sse_reader import SSEEvent, iter_sse_fragments, parse_sse_event, parse_sse_stream

__all__ = [
    "ExchangeHandle",
    "ExchangeRegistry",
    "encode_ndjson",
    "iter_ndjson_fragments",
    "SSEEvent",
    "iter_sse_fragments",
    "parse_sse_event",
    "parse_sse_stream",
]
