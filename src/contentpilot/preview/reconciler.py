"""Optimistic section reconciler.

Merges a live update of a document's section list into the list currently rendered. Block
identity is the ``_key`` alone:

* same key multiset (non-empty): a reorder, e.g. drag-and-drop. The incoming order wins but the
  rendered blocks are kept, so nested data the renderer already resolved survives.
* anything else: a content change. The incoming list is taken verbatim; resolved nested data of
  changed blocks is dropped until the next full fetch.

Removing one block and adding another in the same update counts as a content change.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from contentpilot.logging import get_logger
from contentpilot.models.section import Block, LiveUpdateEvent, block_key

logger = get_logger(__name__)


class UpdateKind(str, Enum):
    NONE = "none"
    REORDER = "reorder"
    CONTENT_CHANGE = "content_change"


def section_keys_signature(sections: Sequence[Block] | None) -> str:
    """Sorted, comma-joined block keys; order-independent identity of a list."""

    return ",".join(sorted(block_key(s) for s in sections or ()))


def classify_update(current: Sequence[Block] | None, incoming: Sequence[Block] | None) -> UpdateKind:
    if incoming is None:
        return UpdateKind.NONE
    current_sig = section_keys_signature(current)
    if current_sig and current_sig == section_keys_signature(incoming):
        return UpdateKind.REORDER
    return UpdateKind.CONTENT_CHANGE


def reconcile_sections(current: Sequence[Block] | None, incoming: Sequence[Block] | None) -> list[Block]:
    """Return the next section list. Pure; neither input is modified."""

    kind = classify_update(current, incoming)
    if kind is UpdateKind.NONE:
        return list(current or ())
    assert incoming is not None

    if kind is UpdateKind.REORDER:
        by_key: dict[str, Block] = {}
        for section in current or ():
            by_key.setdefault(block_key(section), section)
        return [by_key.get(block_key(section), section) for section in incoming]

    return list(incoming)


@dataclass
class SectionView:
    """Section list of one mounted document.

    Owns the list exclusively; live updates for other documents are rejected here so they never
    reach the reconciler.
    """

    document_id: str
    sections: list[Block] = field(default_factory=list)

    def replace(self, sections: Sequence[Block]) -> None:
        """Install a freshly fetched list."""

        self.sections = list(sections)

    def apply_live_update(self, event: LiveUpdateEvent) -> UpdateKind:
        """Merge a live update into the rendered list.

        Returns:
            How the update was classified; ``NONE`` if it was ignored.
        """

        if event.document_id != self.document_id:
            logger.debug(
                "Ignoring live update for another document",
                extra={"document_id": event.document_id, "mounted_document_id": self.document_id},
            )
            return UpdateKind.NONE

        incoming = event.document.section_list
        kind = classify_update(self.sections, incoming)
        self.sections = reconcile_sections(self.sections, incoming)
        logger.debug("Applied live update", extra={"document_id": self.document_id, "update_kind": kind.value})
        return kind
