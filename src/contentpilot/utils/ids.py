"""ID utilities."""

from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone


def new_action_id(prefix: str = "action_") -> str:
    """Generate an action id.

    Time-based (epoch milliseconds) for readability plus a short random suffix to avoid
    collisions within a process.
    """

    return f"{prefix}{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


def new_turn_id() -> str:
    """Generate a conversation turn id like ``20260101T120000Z_1a2b3c4d``."""

    ts = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    return f"{ts}_{uuid.uuid4().hex[:8]}"
