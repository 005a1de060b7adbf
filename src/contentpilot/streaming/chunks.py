"""Transport event types for streamed model output."""

from __future__ import annotations

from pydantic import BaseModel

DONE_MARKER = "[DONE]"


class StreamChunk(BaseModel):
    """One transport event: a text fragment, an error, or (rarely) both."""

    text: str | None = None
    error: str | None = None


# A transport event is a chunk, a bare text fragment, or the terminal marker string.
StreamEvent = StreamChunk | str
