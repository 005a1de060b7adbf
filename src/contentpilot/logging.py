"""Logging setup and per-turn log context.

Records that reach the console handler carry ``turn_id``, ``stage`` and ``action_id``. Each
falls back to ``-`` outside a bound context, and a value passed through ``extra=`` wins.
"""

from __future__ import annotations

import contextlib
import contextvars
import logging
from collections.abc import Iterator
from typing import Any

from rich.logging import RichHandler


LOG_FORMAT = "turn=%(turn_id)s stage=%(stage)s action=%(action_id)s %(name)s: %(message)s"

_CONTEXT: dict[str, contextvars.ContextVar[str]] = {
    field: contextvars.ContextVar(f"contentpilot_{field}", default="-")
    for field in ("turn_id", "stage", "action_id")
}


class TurnContextFilter(logging.Filter):
    """Stamp the bound turn context onto log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        for field, var in _CONTEXT.items():
            if not hasattr(record, field):
                setattr(record, field, var.get())
        return True


@contextlib.contextmanager
def _bind(**values: str | None) -> Iterator[None]:
    tokens = [(_CONTEXT[field], _CONTEXT[field].set(value)) for field, value in values.items() if value]
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


def turn_context(*, turn_id: str, stage: str | None = None) -> contextlib.AbstractContextManager[None]:
    """Bind a turn (and optionally its stage) for the duration of a ``with`` block.

    Args:
        turn_id: Conversation turn identifier.
        stage: Pipeline stage (``stream``, ``parse``, ``execute``). Keeps the current one if omitted.
    """

    return _bind(turn_id=turn_id, stage=stage)


def action_context(action_id: str) -> contextlib.AbstractContextManager[None]:
    """Bind the action a block of log calls is about."""

    return _bind(action_id=action_id)


def set_stage(stage: str) -> None:
    _CONTEXT["stage"].set(stage)


def configure_logging(level: str = "INFO") -> None:
    """Route the root logger through a single Rich console handler.

    Safe to call repeatedly: the API factory and each CLI command both call it.
    """

    root = logging.getLogger()
    root.setLevel(level.upper())

    handler = next((h for h in root.handlers if isinstance(h, RichHandler)), None)
    if handler is None:
        handler = RichHandler(rich_tracebacks=True, show_path=False)
        root.addHandler(handler)
    if not any(isinstance(f, TurnContextFilter) for f in handler.filters):
        handler.addFilter(TurnContextFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT))


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_exception(logger: logging.Logger, msg: str, **context: Any) -> None:
    """Log the active exception, appending ``key=value`` context to the message."""

    if not context:
        logger.exception("%s", msg)
        return
    details = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
    logger.exception("%s (%s)", msg, details)
