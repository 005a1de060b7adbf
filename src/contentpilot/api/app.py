"""FastAPI app with action parsing, SSE chat streaming, section reconciliation and replay."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Path, Query, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from contentpilot.actions.parser import parse_response
from contentpilot.actions.policy import describe_for_client
from contentpilot.config import Settings, load_settings
from contentpilot.events import TurnEvent
from contentpilot.llm.client import ChatMessage, LLMClient, Role
from contentpilot.logging import configure_logging, get_logger
from contentpilot.models.section import Block, LiveUpdateEvent
from contentpilot.orchestrator.runner import consume_turn, replay_turn, turn_recorded
from contentpilot.preview.reconciler import SectionView
from contentpilot.streaming.chunks import StreamEvent
from contentpilot.streaming.sse import encode_done, encode_event
from contentpilot.utils.ids import new_turn_id

_TURN_ID_PATTERN = r"^[A-Za-z0-9_-]+$"


class ParseRequest(BaseModel):
    """Parse request."""

    text: str


class ChatMessageIn(BaseModel):
    role: Role
    content: str


class ChatRequest(BaseModel):
    """Streaming chat request."""

    messages: list[ChatMessageIn] = Field(min_length=1)
    system: str | None = None


class ReconcileRequest(BaseModel):
    """Reconcile a rendered section list with a live update."""

    model_config = ConfigDict(populate_by_name=True)

    document_id: str = Field(alias="documentId")
    sections: list[Block] = Field(default_factory=list)
    update: LiveUpdateEvent | None = None


def get_llm_client(request: Request) -> LLMClient:
    """Lazily build the shared LLM client; a missing API key is a 503, not a crash."""

    client = getattr(request.app.state, "llm", None)
    if client is None:
        try:
            client = LLMClient(request.app.state.settings)
        except ValueError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        request.app.state.llm = client
    return client


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create FastAPI app."""

    settings = settings or load_settings()
    configure_logging(settings.log_level)
    logger = get_logger(__name__)

    app = FastAPI(title="ContentPilot", version="0.1.0")
    app.state.settings = settings
    app.state.llm = None

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/actions/parse")
    def actions_parse(req: ParseRequest) -> dict[str, Any]:
        logger.info("API parse requested", extra={"text_len": len(req.text)})
        parsed = parse_response(req.text, max_actions=settings.max_actions_per_response)
        body = parsed.to_wire()
        body["actions"] = [describe_for_client(a) for a in parsed.actions]
        return body

    @app.post("/chat/stream")
    def chat_stream(req: ChatRequest, llm: LLMClient = Depends(get_llm_client)) -> StreamingResponse:
        messages: list[ChatMessage] = []
        if req.system:
            messages.append(ChatMessage(role="system", content=req.system))
        messages.extend(ChatMessage(role=m.role, content=m.content) for m in req.messages)

        turn_id = new_turn_id()
        logger.info("API chat stream requested", extra={"turn": turn_id, "messages": len(messages)})

        async def gen() -> AsyncIterator[bytes]:
            frames: asyncio.Queue[str | None] = asyncio.Queue()

            async def relay() -> AsyncIterator[StreamEvent]:
                async for ev in llm.stream_chat(messages):
                    if ev != settings.stream_done_marker:
                        await frames.put(encode_event(ev, settings.stream_done_marker))
                    yield ev

            async def run() -> None:
                try:
                    await consume_turn(relay(), settings=settings, turn_id=turn_id)
                    await frames.put(encode_done(settings.stream_done_marker))
                finally:
                    await frames.put(None)

            task = asyncio.create_task(run())
            try:
                while True:
                    frame = await frames.get()
                    if frame is None:
                        break
                    yield frame.encode("utf-8")
                await task
            finally:
                if not task.done():
                    task.cancel()

        return StreamingResponse(gen(), media_type="text/event-stream", headers={"X-Turn-Id": turn_id})

    @app.post("/sections/reconcile")
    def sections_reconcile(req: ReconcileRequest) -> dict[str, Any]:
        view = SectionView(document_id=req.document_id, sections=list(req.sections))
        kind = view.apply_live_update(req.update) if req.update is not None else None
        return {
            "documentId": view.document_id,
            "sections": view.sections,
            "kind": kind.value if kind is not None else "none",
        }

    @app.get("/turns/{turn_id}/events")
    def turns_events(
        turn_id: str = Path(pattern=_TURN_ID_PATTERN),
        after: int = Query(0, ge=0),
    ) -> list[TurnEvent]:
        logger.info("API events requested", extra={"turn": turn_id, "after": after})
        events = list(replay_turn(turn_id=turn_id, settings=settings, after_seq=after))
        if not events and not turn_recorded(turn_id=turn_id, settings=settings):
            raise HTTPException(status_code=404, detail="turn not found")
        return events

    return app
