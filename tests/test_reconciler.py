"""Tests for the optimistic section reconciler."""

from __future__ import annotations

import copy

from contentpilot.models.section import LiveDocument, LiveUpdateEvent
from contentpilot.preview.reconciler import (
    SectionView,
    UpdateKind,
    classify_update,
    reconcile_sections,
    section_keys_signature,
)


def _rendered() -> list[dict]:
    return [
        {"_key": "a", "_type": "hero", "image": {"asset": {"url": "https://cdn.example.com/a.png"}}},
        {"_key": "b", "_type": "text", "body": "B"},
        {"_key": "c", "_type": "cta", "link": {"page": {"slug": "contact"}}},
    ]


def test_signature_is_order_independent() -> None:
    """It should compare key sets regardless of order."""

    assert section_keys_signature([{"_key": "b"}, {"_key": "a"}]) == "a,b"
    assert section_keys_signature(None) == ""
    assert section_keys_signature([{"_type": "keyless"}]) == ""


def test_reorder_keeps_rendered_blocks() -> None:
    """It should reorder to the incoming order but keep the resolved rendered blocks."""

    current = _rendered()
    incoming = [
        {"_key": "c", "_type": "cta", "link": {"_ref": "page-contact"}},
        {"_key": "a", "_type": "hero", "image": {"_ref": "image-a"}},
        {"_key": "b", "_type": "text", "body": "B"},
    ]
    before = copy.deepcopy(current)

    merged = reconcile_sections(current, incoming)

    assert classify_update(current, incoming) is UpdateKind.REORDER
    assert [s["_key"] for s in merged] == ["c", "a", "b"]
    assert merged[0] is current[2]
    assert merged[1] is current[0]
    assert merged[0]["link"]["page"]["slug"] == "contact"
    assert current == before


def test_content_change_takes_incoming_verbatim() -> None:
    """It should replace the list when the key set changes."""

    current = _rendered()
    incoming = [*copy.deepcopy(current), {"_key": "d", "_type": "text", "body": "D"}]
    merged = reconcile_sections(current, incoming)

    assert classify_update(current, incoming) is UpdateKind.CONTENT_CHANGE
    assert merged == incoming
    assert merged is not incoming


def test_swap_one_block_for_another_is_a_content_change() -> None:
    """It should not treat a same-length list with a different key set as a reorder."""

    current = _rendered()
    incoming = [{"_key": "a"}, {"_key": "b"}, {"_key": "z"}]
    assert classify_update(current, incoming) is UpdateKind.CONTENT_CHANGE
    assert reconcile_sections(current, incoming) == incoming


def test_absent_incoming_leaves_list_unchanged() -> None:
    """It should keep the current list when the update carries no section list."""

    current = _rendered()
    assert classify_update(current, None) is UpdateKind.NONE
    assert reconcile_sections(current, None) == current


def test_empty_lists_are_content_changes() -> None:
    """It should not classify an empty list as a reorder."""

    assert classify_update([], []) is UpdateKind.CONTENT_CHANGE
    assert reconcile_sections([], []) == []
    assert reconcile_sections(None, [{"_key": "a"}]) == [{"_key": "a"}]


def test_reconcile_is_idempotent() -> None:
    """It should give the same result when the same update is applied twice."""

    current = _rendered()
    incoming = [{"_key": "b"}, {"_key": "c"}, {"_key": "a"}]
    once = reconcile_sections(current, incoming)
    assert reconcile_sections(once, incoming) == once


def test_section_view_filters_other_documents() -> None:
    """It should ignore live updates addressed to a different document."""

    view = SectionView(document_id="page-1", sections=_rendered())
    foreign = LiveUpdateEvent(document_id="page-2", document=LiveDocument(section_list=[]))

    assert view.apply_live_update(foreign) is UpdateKind.NONE
    assert [s["_key"] for s in view.sections] == ["a", "b", "c"]


def test_section_view_applies_updates() -> None:
    """It should reorder and then replace the mounted list from wire-shaped events."""

    view = SectionView(document_id="page-1")
    view.replace(_rendered())

    reorder = LiveUpdateEvent.model_validate(
        {"documentId": "page-1", "document": {"sectionList": [{"_key": "c"}, {"_key": "a"}, {"_key": "b"}]}}
    )
    assert view.apply_live_update(reorder) is UpdateKind.REORDER
    assert [s["_key"] for s in view.sections] == ["c", "a", "b"]
    assert view.sections[0]["_type"] == "cta"

    change = LiveUpdateEvent.model_validate(
        {"documentId": "page-1", "document": {"sectionList": [{"_key": "x", "_type": "text"}]}}
    )
    assert view.apply_live_update(change) is UpdateKind.CONTENT_CHANGE
    assert view.sections == [{"_key": "x", "_type": "text"}]

    untouched = LiveUpdateEvent.model_validate({"documentId": "page-1", "document": {"title": "About"}})
    assert view.apply_live_update(untouched) is UpdateKind.NONE
    assert view.sections == [{"_key": "x", "_type": "text"}]


def test_duplicated_key_is_a_content_change() -> None:
    """It should replace the list when a key appears a different number of times."""

    current = [{"_key": "a", "resolved": True}, {"_key": "b"}]
    incoming = [{"_key": "b"}, {"_key": "a"}, {"_key": "a"}]

    assert section_keys_signature(incoming) == "a,a,b"
    assert classify_update(current, incoming) is UpdateKind.CONTENT_CHANGE
    assert reconcile_sections(current, incoming) == incoming


def test_reorder_with_repeated_keys() -> None:
    """It should reorder when both lists repeat the same keys the same number of times."""

    current = [{"_key": "a", "resolved": True}, {"_key": "b"}, {"_key": "a"}]
    incoming = [{"_key": "a"}, {"_key": "a"}, {"_key": "b"}]

    assert classify_update(current, incoming) is UpdateKind.REORDER
    merged = reconcile_sections(current, incoming)
    assert [s["_key"] for s in merged] == ["a", "a", "b"]
    assert merged[0] is current[0] and merged[2] is current[1]


def test_reorder_keeps_locally_expanded_block() -> None:
    """It should return [c, a, b] with b still carrying its expanded data."""

    current = [
        {"_key": "a", "_type": "text"},
        {"_key": "b", "_type": "card", "author": {"name": "Ada", "avatar": "https://cdn.example.com/ada.png"}},
        {"_key": "c", "_type": "text"},
    ]
    incoming = [
        {"_key": "c", "_type": "text"},
        {"_key": "a", "_type": "text"},
        {"_key": "b", "_type": "card", "author": {"_ref": "person-ada"}},
    ]

    merged = reconcile_sections(current, incoming)
    assert [s["_key"] for s in merged] == ["c", "a", "b"]
    assert merged[2]["author"] == {"name": "Ada", "avatar": "https://cdn.example.com/ada.png"}
