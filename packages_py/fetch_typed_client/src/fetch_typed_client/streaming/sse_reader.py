"""
Server-Sent Events (SSE) stream framing.
"""
from dataclasses import dataclass
from typing import AsyncGenerator, AsyncIterable, Optional

DONE_MARKER = "[DONE]"


@dataclass
class SSEEvent:
    """Server-Sent Event."""

    data: str
    id: Optional[str] = None
    event: Optional[str] = None
    retry: Optional[int] = None


async def parse_sse_stream(
    body: AsyncIterable[bytes],
) -> AsyncGenerator[SSEEvent, None]:
    """
    Parse SSE stream from an async iterable body.

    Args:
        body: Async iterable of bytes (httpx response stream).

    Yields:
        SSEEvent objects.
    """
    buffer = ""

    async for chunk in body:
        buffer += chunk.decode("utf-8", errors="replace").replace("\r\n", "\n")

        # Split on double newlines (SSE event delimiter)
        parts = buffer.split("\n\n")

        # Keep the last part in buffer (may be incomplete)
        buffer = parts.pop() if parts else ""

        for part in parts:
            event = parse_sse_event(part)
            if event:
                yield event

    if buffer.strip():
        event = parse_sse_event(buffer)
        if event:
            yield event


async def iter_sse_fragments(
    body: AsyncIterable[bytes],
) -> AsyncGenerator[bytes, None]:
    """
    Frame an SSE stream into fragments, one per event data field.

    Events without data and the OpenAI-style [DONE] marker are skipped.
    """
    async for event in parse_sse_stream(body):
        if not event.data or event.data.strip() == DONE_MARKER:
            continue
        yield event.data.encode("utf-8")


def parse_sse_event(text: str) -> Optional[SSEEvent]:
    """
    Parse a single SSE event from text.

    Returns:
        Parsed SSEEvent or None if the block carries neither data nor type.
    """
    data_lines: list[str] = []
    event_type: Optional[str] = None
    event_id: Optional[str] = None
    retry: Optional[int] = None

    for line in text.split("\n"):
        if line.startswith(":"):
            # Comment line
            continue

        colon_index = line.find(":")
        if colon_index == -1:
            continue

        name = line[:colon_index]
        value = line[colon_index + 1:]
        if value.startswith(" "):
            value = value[1:]

        if name == "event":
            event_type = value
        elif name == "id":
            event_id = value
        elif name == "retry":
            if value.isdigit():
                retry = int(value)
        elif name == "data":
            data_lines.append(value)

    data = "\n".join(data_lines)
    if not data and not event_type:
        return None

    return SSEEvent(data=data, id=event_id, event=event_type, retry=retry)
