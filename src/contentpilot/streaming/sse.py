"""Server-sent event framing of transport events.

Wire format, one event per ``data:`` line::

    data: {"text": "Hello"}

    data: {"error": "upstream closed"}

    data: [DONE]
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterable, AsyncIterator

from contentpilot.logging import get_logger
from contentpilot.streaming.chunks import DONE_MARKER, StreamChunk, StreamEvent

logger = get_logger(__name__)

_DATA_PREFIX = "data: "


def encode_chunk(text: str) -> str:
    payload = json.dumps({"text": text}, ensure_ascii=False)
    return f"{_DATA_PREFIX}{payload}\n\n"


def encode_error(message: str) -> str:
    payload = json.dumps({"error": message}, ensure_ascii=False)
    return f"{_DATA_PREFIX}{payload}\n\n"


def encode_done(done_marker: str = DONE_MARKER) -> str:
    return f"{_DATA_PREFIX}{done_marker}\n\n"


def encode_event(event: StreamEvent, done_marker: str = DONE_MARKER) -> str:
    """Encode one transport event. An error chunk with text yields both frames."""

    if isinstance(event, str):
        return encode_done(done_marker) if event == done_marker else encode_chunk(event)
    frames = ""
    if event.text:
        frames += encode_chunk(event.text)
    if event.error:
        frames += encode_error(event.error)
    return frames


def decode_sse_chunk(chunk: str, done_marker: str = DONE_MARKER) -> list[StreamEvent]:
    """Decode the ``data:`` lines of a raw SSE chunk into transport events.

    Malformed JSON lines are skipped; they are never fatal to the stream.
    """

    events: list[StreamEvent] = []
    for line in chunk.split("\n"):
        if not line.startswith(_DATA_PREFIX):
            continue
        data = line[len(_DATA_PREFIX):].strip()
        if data == done_marker:
            events.append(done_marker)
            continue
        try:
            parsed = json.loads(data)
        except ValueError:
            logger.debug("Skipping malformed SSE data line: %s", data[:100])
            continue
        if not isinstance(parsed, dict):
            continue
        text = parsed.get("text")
        if isinstance(text, str) and text:
            events.append(StreamChunk(text=text))
        error = parsed.get("error")
        if error:
            events.append(StreamChunk(error=str(error)))
    return events


async def aiter_sse_events(
    chunks: AsyncIterable[str], done_marker: str = DONE_MARKER
) -> AsyncIterator[StreamEvent]:
    """Adapt raw SSE text chunks (e.g. ``httpx.Response.aiter_text()``) into transport events.

    Chunk boundaries may fall anywhere, so frames are buffered until their blank-line separator.
    """

    buffer = ""
    async for chunk in chunks:
        buffer += chunk.replace("\r\n", "\n")
        while "\n\n" in buffer:
            frame, buffer = buffer.split("\n\n", 1)
            for event in decode_sse_chunk(frame, done_marker):
                yield event
    if buffer.strip():
        for event in decode_sse_chunk(buffer, done_marker):
            yield event
