"""Streaming response consumer.

Accumulates incremental text fragments of one conversation turn, in arrival order, and hands
the final text to the response parser exactly once. Three ways a stream ends:

* normal end (terminal marker, or the transport simply runs out): text is parsed;
* error event or transport failure: accumulated text is kept, flagged partial, and still parsed;
* cancellation: accumulated text is kept but action extraction is not performed.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterable, Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import ValidationError

from contentpilot.actions.parser import ParsedResponse, parse_response
from contentpilot.logging import get_logger, log_exception
from contentpilot.models.action import Action
from contentpilot.streaming.chunks import DONE_MARKER, StreamChunk
from contentpilot.utils.tags import strip_action_blocks

logger = get_logger(__name__)


class StreamState(str, Enum):
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class StreamResult:
    """Final state of a consumed stream."""

    text: str
    state: StreamState
    error: str | None = None
    parsed: ParsedResponse | None = None
    chunk_count: int = 0

    @property
    def complete(self) -> bool:
        return self.state is StreamState.COMPLETED

    @property
    def cancelled(self) -> bool:
        return self.state is StreamState.CANCELLED

    @property
    def partial(self) -> bool:
        return self.state in (StreamState.FAILED, StreamState.CANCELLED)

    @property
    def actions(self) -> list[Action]:
        return list(self.parsed.actions) if self.parsed is not None else []

    @property
    def display_text(self) -> str:
        """User-facing text; never contains action blocks, even for a cancelled stream."""

        if self.parsed is not None:
            return self.parsed.display_text
        return strip_action_blocks(self.text)


@dataclass
class StreamConsumer:
    """Consumer for one turn's stream. Not reusable across turns."""

    parser: Callable[[str], ParsedResponse] = parse_response
    done_marker: str = DONE_MARKER
    on_fragment: Callable[[str], None] | None = None

    _parts: list[str] = field(default_factory=list, init=False, repr=False)
    _chunk_count: int = field(default=0, init=False, repr=False)
    _result: StreamResult | None = field(default=None, init=False, repr=False)

    @property
    def text(self) -> str:
        """Text accumulated so far."""

        return "".join(self._parts)

    @property
    def finished(self) -> bool:
        return self._result is not None

    @property
    def result(self) -> StreamResult | None:
        return self._result

    def feed(self, event: Any) -> bool:
        """Process one transport event.

        Returns:
            False once the stream has ended (this event ended it, or it had already ended).
        """

        if self._result is not None:
            logger.debug("Ignoring event after end of stream")
            return False

        if isinstance(event, str):
            if event == self.done_marker:
                self.finish()
                return False
            self._append(event)
            return True

        if isinstance(event, Mapping):
            try:
                event = StreamChunk.model_validate(event)
            except ValidationError:
                logger.warning("Ignoring malformed stream event: %r", event)
                return True

        if isinstance(event, StreamChunk):
            if event.text:
                self._append(event.text)
            if event.error:
                self.fail(event.error)
                return False
            return True

        logger.warning("Ignoring unrecognized stream event of type %s", type(event).__name__)
        return True

    def finish(self) -> StreamResult:
        """Mark normal end of stream and parse the accumulated text."""

        return self._finalize(StreamState.COMPLETED)

    def fail(self, reason: str) -> StreamResult:
        """Mark an error end of stream; the partial text is still parsed."""

        logger.warning("Stream ended with error after %d chunks: %s", self._chunk_count, reason)
        return self._finalize(StreamState.FAILED, error=reason)

    def cancel(self) -> StreamResult:
        """Stop processing; keep the text, skip action extraction."""

        return self._finalize(StreamState.CANCELLED)

    async def consume(self, events: AsyncIterable[Any]) -> StreamResult:
        """Drain ``events`` until the stream ends.

        Task cancellation finalizes the consumer as cancelled and is then re-raised.
        """

        try:
            async for event in events:
                if not self.feed(event):
                    break
        except asyncio.CancelledError:
            self.cancel()
            raise
        except Exception as exc:  # transport failure ends this turn only
            log_exception(logger, "Stream transport failed", chunks=self._chunk_count)
            self.fail(str(exc) or type(exc).__name__)
        finally:
            aclose = getattr(events, "aclose", None)
            if aclose is not None and self._result is not None:
                await aclose()

        if self._result is None:
            self.finish()
        assert self._result is not None
        return self._result

    def _append(self, text: str) -> None:
        self._parts.append(text)
        self._chunk_count += 1
        if self.on_fragment is not None:
            self.on_fragment(text)

    def _finalize(self, state: StreamState, *, error: str | None = None) -> StreamResult:
        if self._result is not None:
            return self._result

        text = self.text
        parsed: ParsedResponse | None = None
        if state is not StreamState.CANCELLED:
            parsed = self.parser(text)
        else:
            logger.info("Stream cancelled after %d chunks; action extraction skipped", self._chunk_count)

        self._result = StreamResult(
            text=text,
            state=state,
            error=error,
            parsed=parsed,
            chunk_count=self._chunk_count,
        )
        return self._result
