"""Fenced block scanning and tolerant JSON parsing.

Model output is free-form text, not a designed protocol. This module provides the lightweight,
reusable extraction helpers the action parser builds on:

* locating fenced blocks (```` ```action ```` / ```` ```json ````) in document order;
* parsing a block body as JSON, repairing a bounded set of common mistakes;
* stripping recognized blocks to produce user-facing text.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator

from contentpilot.logging import get_logger

logger = get_logger(__name__)

ACTION_TAG = "action"
JSON_TAG = "json"

_FENCED_BLOCK_RE = re.compile(
    r"```(?P<tag>{}|{})\s*(?P<body>.*?)```".format(ACTION_TAG, JSON_TAG),
    re.DOTALL,
)
_LEGACY_ACTION_RE = re.compile(r"\[ACTION\]\s*\{.*?\}\s*\[/ACTION\]", re.DOTALL)
# A fence still open at the end of text (stream cut off mid-block).
_OPEN_BLOCK_RE = re.compile(r"```(?:{}|{}).*\Z".format(ACTION_TAG, JSON_TAG), re.DOTALL)
_BLANK_RUN_RE = re.compile(r"\n{3,}")

# Both repair patterns match a whole string literal first so its contents are never rewritten.
_STRING = r'(?P<string>"(?:\\.|[^"\\])*")'
_TRAILING_COMMA_RE = re.compile(_STRING + r"|,\s*(?P<close>[}\]])")
# Keys are identifiers directly after `{` or `,`.
_BARE_KEY_RE = re.compile(_STRING + r"|(?P<lead>[{,]\s*)(?P<key>[A-Za-z_$][\w$]*)(?P<gap>\s*):")


@dataclass(frozen=True)
class FencedBlock:
    """A fenced block found in text."""

    tag: str
    body: str
    start: int
    end: int


class ParseOutcome(str, Enum):
    """Terminal state of a tolerant parse."""

    PARSED = "parsed"
    REPAIRED = "repaired"
    DISCARDED = "discarded"


@dataclass(frozen=True)
class TolerantParse:
    """Result of :func:`parse_tolerant_json`."""

    outcome: ParseOutcome
    value: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is not ParseOutcome.DISCARDED


def iter_fenced_blocks(text: str) -> Iterator[FencedBlock]:
    """Yield ``action`` and ``json`` fenced blocks in document order."""

    if not text:
        return
    for m in _FENCED_BLOCK_RE.finditer(text):
        yield FencedBlock(tag=m.group("tag"), body=m.group("body").strip(), start=m.start(), end=m.end())


def _drop_trailing_comma(match: re.Match[str]) -> str:
    return match.group("string") or match.group("close")


def _quote_bare_key(match: re.Match[str]) -> str:
    if match.group("string") is not None:
        return match.group("string")
    return '{}"{}"{}:'.format(match.group("lead"), match.group("key"), match.group("gap"))


def repair_json(text: str) -> str:
    """Apply the bounded set of textual repairs.

    1. Strip trailing commas before ``}`` / ``]``.
    2. Quote bare object keys (``{type: "create"}`` -> ``{"type": "create"}``).

    String literals pass through unchanged.
    """

    repaired = _TRAILING_COMMA_RE.sub(_drop_trailing_comma, text)
    return _BARE_KEY_RE.sub(_quote_bare_key, repaired)


def parse_tolerant_json(text: str) -> TolerantParse:
    """Parse JSON, retrying once after :func:`repair_json`.

    Never raises. A body that fails both attempts comes back as ``DISCARDED`` with the
    error message of the second attempt.
    """

    try:
        return TolerantParse(outcome=ParseOutcome.PARSED, value=json.loads(text))
    except ValueError:
        pass

    try:
        value = json.loads(repair_json(text))
    except ValueError as exc:
        logger.debug("parse_tolerant_json: repair failed: %s", exc)
        return TolerantParse(outcome=ParseOutcome.DISCARDED, error=str(exc))
    return TolerantParse(outcome=ParseOutcome.REPAIRED, value=value)


def strip_action_blocks(text: str) -> str:
    """Remove fenced action/json blocks (including an unterminated trailing one) and legacy
    ``[ACTION]`` spans, tidy blank lines.
    """

    cleaned = _FENCED_BLOCK_RE.sub("", text or "")
    cleaned = _LEGACY_ACTION_RE.sub("", cleaned)
    cleaned = _OPEN_BLOCK_RE.sub("", cleaned)
    cleaned = _BLANK_RUN_RE.sub("\n\n", cleaned)
    return cleaned.strip()
