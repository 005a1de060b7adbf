"""Tests for action execution policy helpers."""

from __future__ import annotations

from contentpilot.actions.policy import (
    describe_for_client,
    format_action_for_display,
    is_destructive_action,
    should_auto_execute,
    validate_action_requirements,
)
from contentpilot.models.action import Action, ActionKind, ActionPayload


def _action(kind: ActionKind, description: str = "Do it", **payload: object) -> Action:
    return Action(id="action_1", kind=kind, description=description, payload=ActionPayload(**payload))


def test_destructive_actions() -> None:
    """It should flag deletes and descriptions that read as destructive."""

    assert is_destructive_action(_action(ActionKind.DELETE))
    assert is_destructive_action(_action(ActionKind.UPDATE, "Remove the hero section"))
    assert is_destructive_action(_action(ActionKind.UPDATE, "Unpublish the page"))
    assert not is_destructive_action(_action(ActionKind.CREATE, "Create About page"))


def test_only_read_only_kinds_auto_execute() -> None:
    """It should auto-run query, navigate and explain only."""

    auto = {kind for kind in ActionKind if should_auto_execute(_action(kind))}
    assert auto == {ActionKind.QUERY, ActionKind.NAVIGATE, ActionKind.EXPLAIN}


def test_requirements_per_kind() -> None:
    """It should list what each kind is missing."""

    assert validate_action_requirements(_action(ActionKind.CREATE)) == [
        "Document type is required for create action"
    ]
    assert validate_action_requirements(_action(ActionKind.UPDATE)) == [
        "Document ID is required for update action",
        "Fields are required for update action",
    ]
    assert validate_action_requirements(_action(ActionKind.DELETE)) == [
        "Document ID is required for delete action"
    ]
    assert validate_action_requirements(_action(ActionKind.QUERY)) == ["Query is required for query action"]
    assert validate_action_requirements(_action(ActionKind.NAVIGATE)) == [
        "Document ID or path is required for navigate action"
    ]
    assert validate_action_requirements(_action(ActionKind.NAVIGATE, path="/about")) == []
    assert validate_action_requirements(_action(ActionKind.EXPLAIN)) == []


def test_format_action_for_display() -> None:
    """It should render the description, kind and known payload fields."""

    text = format_action_for_display(
        _action(ActionKind.UPDATE, "Rename page", document_id="page-1", fields={"title": "About"})
    )
    lines = text.splitlines()
    assert lines[0] == "**Rename page**"
    assert lines[1] == "Type: update"
    assert "Document ID: page-1" in lines
    assert '"title": "About"' in text


def test_describe_for_client_adds_flags() -> None:
    """It should merge the policy flags into the wire form."""

    data = describe_for_client(_action(ActionKind.DELETE, "Delete page", document_id="page-1"))
    assert data["type"] == "delete"
    assert data["payload"] == {"documentId": "page-1"}
    assert data["isDestructive"] is True
    assert data["autoExecute"] is False
    assert data["validationErrors"] == []
