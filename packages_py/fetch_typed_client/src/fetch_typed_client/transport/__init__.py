"""
Transports for fetch_typed_client.
"""
from .base import Transport
from .httpx_transport import HttpxTransport, frame_stream, to_httpx_timeout

__all__ = [
    "Transport",
    "HttpxTransport",
    "frame_stream",
    "to_httpx_timeout",
]
