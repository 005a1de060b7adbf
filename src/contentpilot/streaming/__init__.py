"""Streamed model output: transport events, SSE framing and the response consumer."""

from __future__ import annotations

from contentpilot.streaming.chunks import DONE_MARKER, StreamChunk, StreamEvent
from contentpilot.streaming.consumer import StreamConsumer, StreamResult, StreamState

__all__ = [
    "DONE_MARKER",
    "StreamChunk",
    "StreamConsumer",
    "StreamEvent",
    "StreamResult",
    "StreamState",
]
