"""Section list models.

A rendered document carries an ordered list of content blocks. Blocks are kept as plain
mappings so nested data resolved by the renderer (expanded references etc.) survives untouched;
only the identifying ``_key`` and the ``_type`` tag are interpreted.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

Block = dict[str, Any]

BLOCK_KEY_FIELD = "_key"


def block_key(block: Block | None) -> str:
    """Return the identifying key of a block, ``""`` when it has none."""

    if not block:
        return ""
    key = block.get(BLOCK_KEY_FIELD)
    return str(key) if key is not None else ""


class LiveDocument(BaseModel):
    """Document representation carried by a live update."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    section_list: list[Block] | None = Field(default=None, alias="sectionList")


class LiveUpdateEvent(BaseModel):
    """A pushed notification that a stored document changed."""

    model_config = ConfigDict(populate_by_name=True)

    document_id: str = Field(alias="documentId")
    document: LiveDocument = Field(default_factory=LiveDocument)
