from __future__ import annotations

from dataclasses import dataclass, field

from contentpilot.actions.lifecycle import ActionLedger, LifecycleEvent
from contentpilot.models.action import Action
from contentpilot.streaming.consumer import StreamResult


@dataclass
class TurnState:
    turn_id: str
    stream: StreamResult | None = None
    ledger: ActionLedger = field(default_factory=ActionLedger)

    @property
    def actions(self) -> list[Action]:
        return self.ledger.actions()

    @property
    def display_text(self) -> str:
        return self.stream.display_text if self.stream is not None else ""

    def apply(self, action_id: str, event: LifecycleEvent) -> Action | None:
        """Swap in the ledger produced by ``event`` and return the action's new value."""

        self.ledger = self.ledger.apply(action_id, event)
        return self.ledger.get(action_id)

    def snapshot(self) -> dict[str, str | int | bool | None]:
        return {
            "turn_id": self.turn_id,
            "stream_state": self.stream.state.value if self.stream is not None else None,
            "partial": self.stream.partial if self.stream is not None else None,
            "chunk_count": self.stream.chunk_count if self.stream is not None else 0,
            "action_count": len(self.ledger),
        }
