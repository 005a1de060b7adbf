"""Execution policy helpers for parsed actions.

These do not change an action; they tell the caller how to treat it (confirm first, run
automatically, or refuse because required payload data is missing).
"""

from __future__ import annotations

import json

from contentpilot.models.action import Action, ActionKind

READ_ONLY_KINDS: frozenset[ActionKind] = frozenset({ActionKind.QUERY, ActionKind.NAVIGATE, ActionKind.EXPLAIN})

_DESTRUCTIVE_KEYWORDS = ("delete", "remove", "unpublish", "destroy", "clear", "reset")


def is_destructive_action(action: Action) -> bool:
    """Return True if the action needs explicit user confirmation."""

    if action.kind is ActionKind.DELETE:
        return True
    description = action.description.lower()
    return any(keyword in description for keyword in _DESTRUCTIVE_KEYWORDS)


def should_auto_execute(action: Action) -> bool:
    """Read-only actions run without confirmation; mutating ones wait for the user."""

    return action.kind in READ_ONLY_KINDS


def validate_action_requirements(action: Action) -> list[str]:
    """List the payload data an executor would need but the action does not carry."""

    errors: list[str] = []
    payload = action.payload

    if action.kind is ActionKind.CREATE:
        if not payload.document_type:
            errors.append("Document type is required for create action")
    elif action.kind is ActionKind.UPDATE:
        if not payload.document_id:
            errors.append("Document ID is required for update action")
        if not payload.fields:
            errors.append("Fields are required for update action")
    elif action.kind is ActionKind.DELETE:
        if not payload.document_id:
            errors.append("Document ID is required for delete action")
    elif action.kind is ActionKind.QUERY:
        if not payload.query:
            errors.append("Query is required for query action")
    elif action.kind is ActionKind.NAVIGATE:
        if not payload.document_id and not payload.path:
            errors.append("Document ID or path is required for navigate action")

    return errors


def format_action_for_display(action: Action) -> str:
    """Render a short markdown summary of an action."""

    lines = [f"**{action.description}**", f"Type: {action.kind.value}"]
    payload = action.payload
    if payload.document_type:
        lines.append(f"Document Type: {payload.document_type}")
    if payload.document_id:
        lines.append(f"Document ID: {payload.document_id}")
    if payload.query:
        lines.append(f"Query: {payload.query}")
    if payload.fields:
        lines.append(f"Fields: {json.dumps(payload.fields, indent=2, ensure_ascii=False, default=str)}")
    return "\n".join(lines)


def describe_for_client(action: Action) -> dict[str, object]:
    """Wire form of an action annotated with its policy flags."""

    data = action.to_wire()
    data["isDestructive"] = is_destructive_action(action)
    data["autoExecute"] = should_auto_execute(action)
    data["validationErrors"] = validate_action_requirements(action)
    return data
