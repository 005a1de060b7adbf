"""Recording utilities for turn events."""

from __future__ import annotations

from contentpilot.recording.file_recorder import FileEventRecorder, iter_events, last_seq
from contentpilot.recording.redis_recorder import RedisEventRecorder

__all__ = ["FileEventRecorder", "RedisEventRecorder", "iter_events", "last_seq"]
