"""Tests for server-sent event framing."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

from contentpilot.streaming.chunks import DONE_MARKER, StreamChunk
from contentpilot.streaming.consumer import StreamConsumer, StreamState
from contentpilot.streaming.sse import (
    aiter_sse_events,
    decode_sse_chunk,
    encode_chunk,
    encode_done,
    encode_event,
)


def test_encode_frames() -> None:
    """It should write one data line per event followed by a blank line."""

    assert encode_chunk("Hi") == 'data: {"text": "Hi"}\n\n'
    assert encode_done() == "data: [DONE]\n\n"
    assert encode_event(DONE_MARKER) == "data: [DONE]\n\n"
    assert encode_event(StreamChunk(text="a", error="b")) == (
        'data: {"text": "a"}\n\ndata: {"error": "b"}\n\n'
    )


def test_decode_skips_malformed_lines() -> None:
    """It should decode text, error and done lines and skip garbage."""

    raw = (
        'data: {"text": "Hel"}\n'
        "data: {not json\n"
        ": comment\n"
        'data: {"error": "boom"}\n'
        "data: [DONE]\n"
    )
    events = decode_sse_chunk(raw)
    assert events == [StreamChunk(text="Hel"), StreamChunk(error="boom"), DONE_MARKER]


def test_aiter_sse_events_buffers_split_frames() -> None:
    """It should reassemble frames split across transport chunks."""

    wire = encode_chunk("Hello ") + encode_chunk("world") + encode_done()
    pieces = [wire[i : i + 7] for i in range(0, len(wire), 7)]

    async def source() -> AsyncIterator[str]:
        for piece in pieces:
            yield piece

    async def collect() -> list[object]:
        return [event async for event in aiter_sse_events(source())]

    events = asyncio.run(collect())
    assert events == [StreamChunk(text="Hello "), StreamChunk(text="world"), DONE_MARKER]


def test_sse_feeds_consumer() -> None:
    """It should drive the consumer from raw SSE text."""

    wire = encode_chunk('```action\n{"type": "explain"}\n```') + encode_done()

    async def source() -> AsyncIterator[str]:
        yield wire

    result = asyncio.run(StreamConsumer().consume(aiter_sse_events(source())))
    assert result.state is StreamState.COMPLETED
    assert len(result.actions) == 1
