"""Event model used for streaming output and replay.

A conversation turn produces a sequence of events. Events are recorded to JSONL so the turn can
be replayed later (e.g., for debugging, audits, or UI playback).
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """High-level event categories."""

    SYSTEM = "system"
    LLM = "llm"
    ACTION = "action"
    ERROR = "error"


class ContentType(str, Enum):
    """Semantic types within event streams."""

    MESSAGE = "message"

    # Streaming
    STREAM_CHUNK = "stream_chunk"
    STREAM_DONE = "stream_done"
    STREAM_ERROR = "stream_error"
    STREAM_CANCELLED = "stream_cancelled"

    # Actions
    ACTIONS_PARSED = "actions_parsed"
    BLOCK_DISCARDED = "block_discarded"
    ACTION_TRANSITION = "action_transition"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TurnEvent(BaseModel):
    """A single event in a conversation turn."""

    turn_id: str
    seq: int = Field(ge=1)
    ts: datetime = Field(default_factory=_utcnow)

    event_type: EventType
    content_type: ContentType

    data: str | dict | list | None = None
    metadata: dict[str, str | int | float | bool | None] = Field(default_factory=dict)
