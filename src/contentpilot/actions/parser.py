"""Response action parser.

Turns the complete text of a model response into validated actions plus the human-readable
remainder. Each fenced block is handled in isolation: a block that cannot be decoded or
validated is dropped with a diagnostic and never affects its siblings.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from contentpilot.actions.grammar import declared_kind, validate_action
from contentpilot.logging import get_logger
from contentpilot.models.action import Action
from contentpilot.utils.tags import (
    JSON_TAG,
    ParseOutcome,
    iter_fenced_blocks,
    parse_tolerant_json,
    strip_action_blocks,
)

logger = get_logger(__name__)

_EXCERPT_CHARS = 100


@dataclass(frozen=True)
class BlockDiagnostic:
    """What happened to one fenced block."""

    tag: str
    outcome: ParseOutcome
    excerpt: str
    reason: str | None = None
    action_id: str | None = None


@dataclass(frozen=True)
class ParsedResponse:
    """Actions and display text extracted from one model response."""

    actions: list[Action] = field(default_factory=list)
    display_text: str = ""
    diagnostics: list[BlockDiagnostic] = field(default_factory=list)

    def to_wire(self) -> dict[str, object]:
        return {
            "actions": [a.to_wire() for a in self.actions],
            "displayText": self.display_text,
            "diagnostics": [
                {
                    "tag": d.tag,
                    "outcome": d.outcome.value,
                    "reason": d.reason,
                    "actionId": d.action_id,
                }
                for d in self.diagnostics
            ],
        }


def parse_response(text: str, *, max_actions: int = 0) -> ParsedResponse:
    """Extract actions and display text from a finished model response.

    Args:
        text: Complete response text.
        max_actions: Keep at most this many actions (0 keeps all). Extra actions are logged
            and dropped.

    Returns:
        ParsedResponse with actions in document order.
    """

    actions: list[Action] = []
    diagnostics: list[BlockDiagnostic] = []

    for block in iter_fenced_blocks(text or ""):
        excerpt = block.body[:_EXCERPT_CHARS]
        decoded = parse_tolerant_json(block.body)
        if not decoded.ok:
            logger.warning("Discarded %s block: %s | %s", block.tag, decoded.error, excerpt)
            diagnostics.append(
                BlockDiagnostic(tag=block.tag, outcome=decoded.outcome, excerpt=excerpt, reason=decoded.error)
            )
            continue

        value = decoded.value
        if block.tag == JSON_TAG and not (isinstance(value, Mapping) and declared_kind(value) is not None):
            # Generic JSON without a type is usually an example payload, not an action.
            continue

        action = validate_action(value)
        if action is None:
            diagnostics.append(
                BlockDiagnostic(
                    tag=block.tag,
                    outcome=ParseOutcome.DISCARDED,
                    excerpt=excerpt,
                    reason="invalid action",
                )
            )
            continue

        diagnostics.append(
            BlockDiagnostic(tag=block.tag, outcome=decoded.outcome, excerpt=excerpt, action_id=action.id)
        )
        actions.append(action)

    if max_actions and len(actions) > max_actions:
        logger.warning("Response produced %d actions; keeping the first %d", len(actions), max_actions)
        actions = actions[:max_actions]

    return ParsedResponse(actions=actions, display_text=extract_display_text(text), diagnostics=diagnostics)


def parse_actions(text: str) -> list[Action]:
    """Extract only the actions from a model response."""

    return parse_response(text).actions


def extract_display_text(text: str) -> str:
    """Return the user-facing text with all action blocks removed."""

    return strip_action_blocks(text)
