"""
Newline-Delimited JSON (NDJSON) stream framing.

Splits a streamed body into one fragment per non-blank line. Fragments are
returned as raw bytes; decoding happens per exchange in the registry.
"""
from typing import AsyncGenerator, AsyncIterable, Iterable, Optional

from ..config import DefaultSerializer
from ..types import Serializer


async def iter_ndjson_fragments(
    body: AsyncIterable[bytes],
) -> AsyncGenerator[bytes, None]:
    """
    Frame an async byte stream into NDJSON lines.

    Args:
        body: Async iterable of bytes (httpx response stream).

    Yields:
        One stripped line per JSON document.
    """
    buffer = b""

    async for chunk in body:
        buffer += chunk

        # Split on newlines
        lines = buffer.split(b"\n")

        # Keep the last line in buffer (may be incomplete)
        buffer = lines.pop() if lines else b""

        for line in lines:
            trimmed = line.strip()
            if trimmed:
                yield trimmed

    # Handle any remaining data
    trimmed = buffer.strip()
    if trimmed:
        yield trimmed


def encode_ndjson(items: Iterable[object], serializer: Optional[Serializer] = None) -> bytes:
    """
    Encode objects as NDJSON.

    Args:
        items: Items to encode.
        serializer: Serializer, DefaultSerializer when omitted.

    Returns:
        NDJSON bytes, newline terminated.
    """
    if serializer is None:
        serializer = DefaultSerializer()

    return b"".join(serializer.encode(item) + b"\n" for item in items)
