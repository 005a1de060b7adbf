"""Action extraction, validation and lifecycle."""

from __future__ import annotations

from contentpilot.actions.grammar import default_description, is_valid_action_kind, parse_payload, validate_action
from contentpilot.actions.lifecycle import (
    ActionLedger,
    ExecutionFailed,
    ExecutionStarted,
    ExecutionSucceeded,
    LifecycleEvent,
    UserCancelled,
    can_transition,
    transition,
)
from contentpilot.actions.parser import BlockDiagnostic, ParsedResponse, extract_display_text, parse_actions, parse_response

__all__ = [
    "ActionLedger",
    "BlockDiagnostic",
    "ExecutionFailed",
    "ExecutionStarted",
    "ExecutionSucceeded",
    "LifecycleEvent",
    "ParsedResponse",
    "UserCancelled",
    "can_transition",
    "default_description",
    "extract_display_text",
    "is_valid_action_kind",
    "parse_actions",
    "parse_payload",
    "parse_response",
    "transition",
    "validate_action",
]
