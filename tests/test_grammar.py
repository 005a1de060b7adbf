"""Tests for the action grammar and validator."""

from __future__ import annotations

import pytest

from contentpilot.actions.grammar import (
    default_description,
    is_valid_action_kind,
    parse_payload,
    validate_action,
)
from contentpilot.models.action import ActionKind, ActionStatus
from contentpilot.utils.ids import new_action_id


def test_valid_kinds_are_a_closed_set() -> None:
    """It should accept exactly the seven known kinds."""

    for kind in ("create", "update", "delete", "query", "navigate", "explain", "uploadImage"):
        assert is_valid_action_kind(kind)
    assert not is_valid_action_kind("publish")
    assert not is_valid_action_kind("CREATE")
    assert not is_valid_action_kind(None)
    assert not is_valid_action_kind(3)


def test_validate_nested_payload_with_aliases() -> None:
    """It should read a nested payload and map `data` onto `fields`."""

    action = validate_action(
        {
            "type": "update",
            "description": "Rename page",
            "payload": {"documentId": "page-1", "data": {"title": "About"}},
        }
    )
    assert action is not None
    assert action.kind is ActionKind.UPDATE
    assert action.status is ActionStatus.PENDING
    assert action.description == "Rename page"
    assert action.payload.document_id == "page-1"
    assert action.payload.fields == {"title": "About"}
    assert action.id.startswith("action_")


def test_validate_flat_payload_with_aliases() -> None:
    """It should fall back to the top-level object and map groq/url/message aliases."""

    query = validate_action({"type": "query", "groq": "*[_type == 'page']"})
    navigate = validate_action({"type": "navigate", "url": "/about"})
    explain = validate_action({"type": "explain", "message": "Pages hold sections."})

    assert query is not None and query.payload.query == "*[_type == 'page']"
    assert navigate is not None and navigate.payload.path == "/about"
    assert explain is not None and explain.payload.explanation == "Pages hold sections."


def test_explicit_fields_win_over_aliases() -> None:
    """It should prefer `fields` over `data` and `path` over `url`."""

    payload = parse_payload({"fields": {"a": 1}, "data": {"b": 2}, "path": "/x", "url": "/y"})
    assert payload.fields == {"a": 1}
    assert payload.path == "/x"


def test_empty_nested_payload_falls_back_to_flat() -> None:
    """It should use top-level fields when `payload` is empty or not an object."""

    empty = validate_action({"type": "create", "payload": {}, "documentType": "page"})
    not_object = validate_action({"type": "create", "payload": "page", "documentType": "page"})
    assert empty is not None and empty.payload.document_type == "page"
    assert not_object is not None and not_object.payload.document_type == "page"


def test_kind_member_is_accepted_as_type() -> None:
    """It should accept `kind` when `type` is absent."""

    action = validate_action({"kind": "delete", "documentId": "x"})
    assert action is not None
    assert action.kind is ActionKind.DELETE


def test_default_description() -> None:
    """It should fill in a per-kind description when none (or a blank one) is given."""

    action = validate_action({"type": "create", "description": "   "})
    assert action is not None
    assert action.description == default_description(ActionKind.CREATE) == "Create a new document"


@pytest.mark.parametrize(
    "candidate",
    [
        {"type": "publish"},
        {"type": 5},
        {"description": "no type"},
        "create",
        ["create"],
        None,
    ],
)
def test_invalid_candidates_are_rejected(candidate: object) -> None:
    """It should return None without raising for anything that is not a valid action."""

    assert validate_action(candidate) is None


def test_wrongly_shaped_payload_values_are_dropped() -> None:
    """It should ignore payload values of the wrong type instead of coercing them."""

    payload = parse_payload({"documentId": 42, "fields": "title=About", "query": ["*"]})
    assert payload.document_id is None
    assert payload.fields is None
    assert payload.query is None


def test_action_ids_are_unique() -> None:
    """It should not repeat ids within a process."""

    ids = {new_action_id() for _ in range(1000)}
    assert len(ids) == 1000


def test_wire_form_uses_camel_case() -> None:
    """It should serialize kind as `type` and payload names in camelCase."""

    action = validate_action({"type": "create", "documentType": "page"})
    assert action is not None
    wire = action.to_wire()
    assert wire["type"] == "create"
    assert wire["status"] == "pending"
    assert wire["payload"] == {"documentType": "page"}
