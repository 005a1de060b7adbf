"""Action models.

An action is one intended content-store mutation (or read-only request) extracted from model
text. Actions are immutable values; the lifecycle tracker produces updated copies.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ActionKind(str, Enum):
    """Closed set of recognized action kinds."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    QUERY = "query"
    NAVIGATE = "navigate"
    EXPLAIN = "explain"
    UPLOAD_IMAGE = "uploadImage"


class ActionStatus(str, Enum):
    """Execution status of an action."""

    PENDING = "pending"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ActionPayload(BaseModel):
    """Loosely-typed payload of an action. Every field is optional."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    document_type: str | None = Field(default=None, alias="documentType")
    document_id: str | None = Field(default=None, alias="documentId")
    fields: dict[str, Any] | None = None
    query: str | None = None
    path: str | None = None
    explanation: str | None = None
    filename: str | None = None


class ActionResult(BaseModel):
    """Outcome reported by the external executor."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    success: bool
    data: Any = None
    message: str | None = None
    document_id: str | None = Field(default=None, alias="documentId")


class Action(BaseModel):
    """A validated action extracted from a model response."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(min_length=1)
    kind: ActionKind = Field(alias="type")
    description: str
    status: ActionStatus = ActionStatus.PENDING
    payload: ActionPayload = Field(default_factory=ActionPayload)
    result: ActionResult | None = None
    error: str | None = None

    def to_wire(self) -> dict[str, Any]:
        """Serialize with the camelCase field names used by clients."""

        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
