"""Action lifecycle tracker.

A pure reducer over ``(Action, event) -> Action``. Only execution events reported by an external
executor drive transitions; neither the parser nor the tracker ever executes an action.

Legal transitions::

    pending   --ExecutionStarted-->    executing
    executing --ExecutionSucceeded-->  completed
    executing --ExecutionFailed-->     failed
    pending   --UserCancelled-->       cancelled
    executing --UserCancelled-->       cancelled

Anything else is a no-op: duplicate or late events can legitimately race with each other.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from contentpilot.logging import get_logger
from contentpilot.models.action import Action, ActionResult, ActionStatus

logger = get_logger(__name__)


@dataclass(frozen=True)
class ExecutionStarted:
    """The executor started working on the action."""


@dataclass(frozen=True)
class ExecutionSucceeded:
    """The executor finished successfully."""

    result: ActionResult | None = None


@dataclass(frozen=True)
class ExecutionFailed:
    """The executor gave up on the action."""

    reason: str


@dataclass(frozen=True)
class UserCancelled:
    """The user cancelled the action before it finished."""


LifecycleEvent = ExecutionStarted | ExecutionSucceeded | ExecutionFailed | UserCancelled

TERMINAL_STATUSES: frozenset[ActionStatus] = frozenset(
    {ActionStatus.COMPLETED, ActionStatus.FAILED, ActionStatus.CANCELLED}
)

_TRANSITIONS: dict[tuple[ActionStatus, type], ActionStatus] = {
    (ActionStatus.PENDING, ExecutionStarted): ActionStatus.EXECUTING,
    (ActionStatus.EXECUTING, ExecutionSucceeded): ActionStatus.COMPLETED,
    (ActionStatus.EXECUTING, ExecutionFailed): ActionStatus.FAILED,
    (ActionStatus.PENDING, UserCancelled): ActionStatus.CANCELLED,
    (ActionStatus.EXECUTING, UserCancelled): ActionStatus.CANCELLED,
}


def is_terminal(status: ActionStatus) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(status: ActionStatus, event: LifecycleEvent) -> bool:
    """Return True if ``event`` is legal for an action in ``status``."""

    return (status, type(event)) in _TRANSITIONS


def transition(action: Action, event: LifecycleEvent) -> Action:
    """Apply one lifecycle event.

    Returns a new :class:`Action` for a legal transition and ``action`` itself otherwise.
    """

    target = _TRANSITIONS.get((action.status, type(event)))
    if target is None:
        logger.debug(
            "Ignored illegal transition",
            extra={"action_id": action.id, "status": action.status.value, "event": type(event).__name__},
        )
        return action

    update: dict[str, object] = {"status": target}
    if isinstance(event, ExecutionSucceeded) and event.result is not None:
        update["result"] = event.result
    elif isinstance(event, ExecutionFailed):
        update["error"] = event.reason
    return action.model_copy(update=update)


@dataclass(frozen=True)
class ActionLedger:
    """Lifecycle state of one conversation turn, keyed by action id.

    The ledger is a value: :meth:`apply` returns a new ledger and leaves this one untouched.
    """

    _actions: Mapping[str, Action] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_actions(cls, actions: Iterable[Action]) -> ActionLedger:
        return cls(MappingProxyType({a.id: a for a in actions}))

    def __len__(self) -> int:
        return len(self._actions)

    def __contains__(self, action_id: object) -> bool:
        return action_id in self._actions

    def __iter__(self) -> Iterator[Action]:
        return iter(self._actions.values())

    def get(self, action_id: str) -> Action | None:
        return self._actions.get(action_id)

    def actions(self) -> list[Action]:
        """All actions in the order they were parsed."""

        return list(self._actions.values())

    def apply(self, action_id: str, event: LifecycleEvent) -> ActionLedger:
        """Apply ``event`` to one action. Unknown ids and illegal transitions are no-ops."""

        current = self._actions.get(action_id)
        if current is None:
            logger.debug("Lifecycle event for unknown action", extra={"action_id": action_id})
            return self
        updated = transition(current, event)
        if updated is current:
            return self
        actions = dict(self._actions)
        actions[action_id] = updated
        return ActionLedger(MappingProxyType(actions))

    def summary(self) -> dict[str, int]:
        """Count actions per status, every status present (zero if unused)."""

        counts = Counter(a.status for a in self._actions.values())
        return {status.value: counts.get(status, 0) for status in ActionStatus}
