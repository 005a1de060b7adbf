"""Pydantic models used across the project."""

from __future__ import annotations

from contentpilot.models.action import Action, ActionKind, ActionPayload, ActionResult, ActionStatus
from contentpilot.models.section import Block, LiveDocument, LiveUpdateEvent, block_key

__all__ = [
    "Action",
    "ActionKind",
    "ActionPayload",
    "ActionResult",
    "ActionStatus",
    "Block",
    "LiveDocument",
    "LiveUpdateEvent",
    "block_key",
]
