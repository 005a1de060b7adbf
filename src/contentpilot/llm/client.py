"""OpenAI-compatible LLM client.

This wraps the `openai` Python SDK and streams chat completions as the ordered transport events
the response consumer reads.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Literal, Protocol, Sequence

from openai import AsyncOpenAI, OpenAIError

from contentpilot.config import Settings
from contentpilot.logging import get_logger
from contentpilot.streaming.chunks import StreamChunk, StreamEvent

logger = get_logger(__name__)

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    """A chat message."""

    role: Role
    content: str


class ChatStreamer(Protocol):
    """Anything that streams a reply to a conversation as transport events."""

    def stream_chat(self, messages: Sequence[ChatMessage]) -> AsyncIterator[StreamEvent]: ...


class LLMClient:
    """LLM client using OpenAI-compatible Chat Completions API."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        if not settings.openai_api_key:
            raise ValueError(
                "Missing CONTENTPILOT_OPENAI_API_KEY. "
                "Set it in environment variables or a .env file."
            )

        self._client = AsyncOpenAI(api_key=settings.openai_api_key, base_url=settings.openai_base_url)

    async def stream_chat(
        self, messages: Sequence[ChatMessage], *, temperature: float | None = None
    ) -> AsyncIterator[StreamEvent]:
        """Stream a completion as transport events.

        Yields text chunks in arrival order, then the configured done marker. An SDK error is
        reported in-band as an error chunk followed by the done marker, so the consumer keeps the
        partial text.
        """

        try:
            stream = await self._client.chat.completions.create(
                model=self._settings.openai_model,
                messages=self._payload(messages),
                temperature=self._temperature(temperature),
                max_tokens=self._settings.openai_max_tokens,
                timeout=self._settings.openai_timeout_s,
                stream=True,
            )
            async for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta
                if delta is not None and delta.content:
                    yield StreamChunk(text=delta.content)
        except OpenAIError as exc:
            logger.warning("LLM stream failed: %s", exc)
            yield StreamChunk(error=str(exc) or "Stream error occurred")
        yield self._settings.stream_done_marker

    def _temperature(self, temperature: float | None) -> float:
        return self._settings.openai_temperature if temperature is None else temperature

    @staticmethod
    def _payload(messages: Sequence[ChatMessage]) -> list[dict[str, str]]:
        return [{"role": m.role, "content": m.content} for m in messages]
