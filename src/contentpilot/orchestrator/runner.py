"""Conversation turn runner.

Wires one turn end to end: transport stream -> consumer -> parser -> action ledger, recording
every step as a :class:`TurnEvent`. Execution of actions stays outside; executors report back
through :func:`record_transition`.
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import AsyncIterable, Callable, Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path

from contentpilot.actions.lifecycle import (
    ActionLedger,
    ExecutionFailed,
    ExecutionSucceeded,
    LifecycleEvent,
)
from contentpilot.actions.parser import parse_response
from contentpilot.config import Settings
from contentpilot.events import ContentType, EventType, TurnEvent
from contentpilot.llm.client import ChatMessage, ChatStreamer, LLMClient
from contentpilot.logging import action_context, get_logger, set_stage, turn_context
from contentpilot.models.action import Action
from contentpilot.orchestrator.state import TurnState
from contentpilot.recording.file_recorder import FileEventRecorder, iter_events, last_seq
from contentpilot.recording.redis_recorder import RedisEventRecorder
from contentpilot.streaming.chunks import StreamEvent
from contentpilot.streaming.consumer import StreamConsumer, StreamState
from contentpilot.utils.ids import new_turn_id

logger = get_logger(__name__)


@dataclass(frozen=True)
class TurnPaths:
    """Paths for a turn."""

    root: Path

    @property
    def events_path(self) -> Path:
        return self.root / "events.jsonl"


def turn_paths(artifacts_dir: Path, turn_id: str) -> TurnPaths:
    return TurnPaths(root=artifacts_dir / f"turn_{turn_id}")


class TurnRecorder:
    """Sequences and persists the events of one turn.

    Numbering continues after any events already recorded for the same turn id.
    """

    def __init__(self, turn_id: str, settings: Settings) -> None:
        self.turn_id = turn_id
        self.paths = turn_paths(settings.artifacts_dir, turn_id)
        self._file = FileEventRecorder(self.paths.events_path)
        self._redis = _redis_recorder(turn_id, settings) if settings.redis_enabled else None
        self._seq = last_seq(self.paths.events_path)

    def emit(
        self,
        event_type: EventType,
        content_type: ContentType,
        data: str | dict | list | None = None,
        *,
        metadata: dict[str, str | int | float | bool | None] | None = None,
    ) -> TurnEvent:
        self._seq += 1
        ev = TurnEvent(
            turn_id=self.turn_id,
            seq=self._seq,
            event_type=event_type,
            content_type=content_type,
            data=data,
            metadata=dict(metadata or {}),
        )
        self._file.append(ev)
        if self._redis is not None:
            self._redis.append(ev)
        return ev


@dataclass
class Turn:
    """A running or finished turn: its state plus the recorder that persists it."""

    state: TurnState
    recorder: TurnRecorder

    @property
    def turn_id(self) -> str:
        return self.state.turn_id


async def consume_turn(
    events: AsyncIterable[StreamEvent],
    *,
    settings: Settings,
    turn_id: str | None = None,
    on_fragment: Callable[[str], None] | None = None,
) -> Turn:
    """Consume one transport stream and extract its actions.

    The stream may come from :meth:`LLMClient.stream_chat` or any other transport producing the
    same events.
    """

    turn_id = turn_id or new_turn_id()
    recorder = TurnRecorder(turn_id, settings)
    state = TurnState(turn_id=turn_id)

    def on_chunk(text: str) -> None:
        recorder.emit(EventType.LLM, ContentType.STREAM_CHUNK, text)
        if on_fragment is not None:
            on_fragment(text)

    consumer = StreamConsumer(
        parser=functools.partial(parse_response, max_actions=settings.max_actions_per_response),
        done_marker=settings.stream_done_marker,
        on_fragment=on_chunk,
    )

    with turn_context(turn_id=turn_id, stage="stream"):
        logger.info("Turn started", extra={"artifacts": str(recorder.paths.root)})
        recorder.emit(EventType.SYSTEM, ContentType.MESSAGE, "turn_started")

        try:
            result = await consumer.consume(events)
        except asyncio.CancelledError:
            recorder.emit(
                EventType.SYSTEM,
                ContentType.STREAM_CANCELLED,
                metadata={"chunk_count": consumer.result.chunk_count if consumer.result else 0},
            )
            raise
        state.stream = result

        if result.state is StreamState.FAILED:
            recorder.emit(EventType.ERROR, ContentType.STREAM_ERROR, result.error)
        else:
            recorder.emit(EventType.LLM, ContentType.STREAM_DONE, metadata={"chunk_count": result.chunk_count})

        set_stage("parse")
        parsed = result.parsed
        assert parsed is not None
        for diag in parsed.diagnostics:
            if diag.action_id is None:
                recorder.emit(
                    EventType.ERROR,
                    ContentType.BLOCK_DISCARDED,
                    {"tag": diag.tag, "reason": diag.reason, "excerpt": diag.excerpt},
                )

        state.ledger = ActionLedger.from_actions(parsed.actions)
        recorder.emit(
            EventType.ACTION,
            ContentType.ACTIONS_PARSED,
            [a.to_wire() for a in parsed.actions],
            metadata={"partial": result.partial},
        )
        logger.info(
            "Turn finished",
            extra={"actions": len(parsed.actions), "partial": result.partial, "chunks": result.chunk_count},
        )

    return Turn(state=state, recorder=recorder)


async def run_turn(
    messages: Sequence[ChatMessage],
    *,
    settings: Settings,
    llm: ChatStreamer | None = None,
    on_fragment: Callable[[str], None] | None = None,
) -> Turn:
    """Stream a model reply to ``messages`` and extract its actions."""

    client = llm or LLMClient(settings)
    return await consume_turn(client.stream_chat(messages), settings=settings, on_fragment=on_fragment)


def record_transition(turn: Turn, action_id: str, event: LifecycleEvent) -> Action | None:
    """Report an execution outcome for one action of ``turn``.

    Illegal transitions leave the ledger untouched and are not recorded.
    """

    before = turn.state.ledger.get(action_id)
    after = turn.state.apply(action_id, event)
    if after is None or after is before:
        return after

    data: dict[str, object] = {"action_id": action_id, "status": after.status.value}
    if isinstance(event, ExecutionFailed):
        data["reason"] = event.reason
    elif isinstance(event, ExecutionSucceeded) and event.result is not None:
        data["result"] = event.result.model_dump(mode="json", by_alias=True, exclude_none=True)
    with turn_context(turn_id=turn.turn_id, stage="execute"), action_context(action_id):
        logger.info("Action %s", after.status.value)
        turn.recorder.emit(EventType.ACTION, ContentType.ACTION_TRANSITION, data)
    return after


def _redis_recorder(turn_id: str, settings: Settings) -> RedisEventRecorder:
    return RedisEventRecorder(
        redis_url=settings.redis_url,
        key_prefix=settings.redis_key_prefix,
        turn_id=turn_id,
    )


def turn_recorded(*, turn_id: str, settings: Settings) -> bool:
    """Whether any event of ``turn_id`` was recorded, on disk or in Redis."""

    if turn_paths(settings.artifacts_dir, turn_id).events_path.exists():
        return True
    return settings.redis_enabled and _redis_recorder(turn_id, settings).exists()


def replay_turn(*, turn_id: str, settings: Settings, after_seq: int = 0) -> Iterator[TurnEvent]:
    """Replay the events of a recorded turn from disk, or else from Redis.

    Only events with ``seq`` greater than ``after_seq`` are yielded, so a client can resume.
    """

    path = turn_paths(settings.artifacts_dir, turn_id).events_path
    if path.exists():
        yield from iter_events(path, after_seq=after_seq)
    elif settings.redis_enabled:
        yield from _redis_recorder(turn_id, settings).iter_events(after_seq=after_seq)
