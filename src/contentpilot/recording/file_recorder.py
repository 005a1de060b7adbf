"""JSONL event log of a turn.

One event per line, appended in ``seq`` order. Readers skip a line that does not validate
(e.g. torn by a writer killed mid-append) with a warning and can resume after a known ``seq``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from contentpilot.events import TurnEvent
from contentpilot.logging import get_logger

logger = get_logger(__name__)


@dataclass
class FileEventRecorder:
    """Appends the events of one turn to ``path``."""

    path: Path

    def __post_init__(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, event: TurnEvent) -> None:
        with self.path.open("a", encoding="utf-8") as f:
            f.write(event.model_dump_json() + "\n")


def iter_events(path: Path, *, after_seq: int = 0) -> list[TurnEvent]:
    """Load the events recorded at ``path`` whose ``seq`` is greater than ``after_seq``."""

    if not path.exists():
        return []

    events: list[TurnEvent] = []
    with path.open(encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                event = TurnEvent.model_validate_json(line)
            except ValidationError as exc:
                logger.warning(
                    "Skipping unreadable event line",
                    extra={"path": str(path), "line": lineno, "errors": exc.error_count()},
                )
                continue
            if event.seq > after_seq:
                events.append(event)
    return events


def last_seq(path: Path) -> int:
    """Highest ``seq`` recorded at ``path``; 0 when nothing was recorded."""

    return max((event.seq for event in iter_events(path)), default=0)
