"""Remote SSE transport.

Streams a turn from a running ContentPilot server (``POST /chat/stream``) and yields the same
transport events as :class:`contentpilot.llm.client.LLMClient`, so a local consumer can follow a
conversation served elsewhere.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence

import httpx

from contentpilot.llm.client import ChatMessage
from contentpilot.logging import get_logger
from contentpilot.streaming.chunks import DONE_MARKER, StreamEvent
from contentpilot.streaming.sse import aiter_sse_events

logger = get_logger(__name__)


class RemoteChatClient:
    """SSE client for the ``/chat/stream`` endpoint."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: float = 120.0,
        done_marker: str = DONE_MARKER,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Server root, e.g. ``http://localhost:8000``.
            timeout_s: Read timeout between frames.
            done_marker: Terminal marker the server uses.
            transport: Custom httpx transport (tests mount a mock here).
        """

        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.done_marker = done_marker
        self._transport = transport
        self.turn_id: str | None = None

    async def stream_chat(self, messages: Sequence[ChatMessage]) -> AsyncIterator[StreamEvent]:
        """Post the conversation and yield the server's events as they arrive.

        HTTP errors are raised, which the consumer records as a failed stream.
        """

        url = f"{self.base_url}/chat/stream"
        payload = {"messages": [{"role": m.role, "content": m.content} for m in messages]}

        async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout_s), transport=self._transport) as client:
            async with client.stream("POST", url, json=payload) as resp:
                resp.raise_for_status()
                self.turn_id = resp.headers.get("x-turn-id")
                logger.info(
                    "Remote stream opened",
                    extra={"url": url, "status_code": resp.status_code, "remote_turn": self.turn_id},
                )
                async for event in aiter_sse_events(resp.aiter_text(), self.done_marker):
                    yield event
