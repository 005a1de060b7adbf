"""Action grammar and validator.

Decides whether an arbitrary parsed JSON value describes an action and normalizes it. Malformed
input is an expected case: functions here return ``None`` / empty values instead of raising.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from contentpilot.logging import get_logger
from contentpilot.models.action import Action, ActionKind, ActionPayload
from contentpilot.utils.ids import new_action_id

logger = get_logger(__name__)

ACTION_KINDS: frozenset[str] = frozenset(k.value for k in ActionKind)

_DEFAULT_DESCRIPTIONS: dict[ActionKind, str] = {
    ActionKind.CREATE: "Create a new document",
    ActionKind.UPDATE: "Update an existing document",
    ActionKind.DELETE: "Delete a document",
    ActionKind.QUERY: "Query documents",
    ActionKind.NAVIGATE: "Navigate to a document",
    ActionKind.EXPLAIN: "Explanation",
    ActionKind.UPLOAD_IMAGE: "Upload image to the content store",
}

# Payload field -> accepted source names, most explicit first.
_PAYLOAD_ALIASES: dict[str, tuple[str, ...]] = {
    "document_type": ("documentType",),
    "document_id": ("documentId",),
    "fields": ("fields", "data"),
    "query": ("query", "groq"),
    "path": ("path", "url"),
    "explanation": ("explanation", "message"),
    "filename": ("filename",),
}
_MAPPING_FIELDS = {"fields"}


def is_valid_action_kind(value: Any) -> bool:
    """Return True if ``value`` is a string member of the closed kind set."""

    return isinstance(value, str) and value in ACTION_KINDS


def default_description(kind: ActionKind) -> str:
    """Fallback description used when the model did not supply one."""

    return _DEFAULT_DESCRIPTIONS[kind]


def declared_kind(data: Mapping[str, Any]) -> Any:
    """Return the raw ``type`` (or ``kind``) member of an action object, ``None`` if absent."""

    if "type" in data:
        return data["type"]
    return data.get("kind")


def parse_payload(source: Any) -> ActionPayload:
    """Normalize a payload source into :class:`ActionPayload`.

    Falsy values count as absent so an alias can still fill the field, and values of the wrong
    shape are dropped rather than coerced.
    """

    if not isinstance(source, Mapping):
        return ActionPayload()

    values: dict[str, Any] = {}
    for field_name, names in _PAYLOAD_ALIASES.items():
        for name in names:
            value = source.get(name)
            if not value:
                continue
            if field_name in _MAPPING_FIELDS:
                if isinstance(value, Mapping):
                    values[field_name] = dict(value)
                    break
                continue
            if isinstance(value, str):
                values[field_name] = value
                break
    return ActionPayload(**values)


def validate_action(data: Any) -> Action | None:
    """Validate and normalize one candidate action object.

    Args:
        data: Untyped value, usually a decoded JSON object.

    Returns:
        A fresh ``pending`` :class:`Action`, or ``None`` if ``data`` is not a valid action.
    """

    if not isinstance(data, Mapping):
        logger.warning("Rejected action candidate: not an object (%s)", type(data).__name__)
        return None

    raw_kind = declared_kind(data)
    if not is_valid_action_kind(raw_kind):
        logger.warning("Rejected action candidate: invalid action type %r", raw_kind)
        return None
    kind = ActionKind(raw_kind)

    nested = data.get("payload")
    if not isinstance(nested, Mapping) or not nested:
        nested = None
    payload_source = nested if nested is not None else data
    payload = parse_payload(payload_source)

    description = data.get("description")
    if not isinstance(description, str) or not description.strip():
        description = default_description(kind)

    action = Action(id=new_action_id(), kind=kind, description=description, payload=payload)
    logger.debug(
        "Parsed action",
        extra={
            "action_id": action.id,
            "kind": kind.value,
            "payload_source": "flat" if nested is None else "nested",
        },
    )
    return action
