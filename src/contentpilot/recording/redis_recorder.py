"""Redis mirror of the turn event log.

Optional. Lets API instances that do not share a disk serve the events of any turn. Each turn
is one Redis list whose TTL is refreshed on every append.
"""

from __future__ import annotations

from dataclasses import dataclass

import redis

from contentpilot.events import TurnEvent


@dataclass
class RedisEventRecorder:
    """Appends the events of one turn to a Redis list."""

    redis_url: str
    key_prefix: str
    turn_id: str
    ttl_seconds: int = 60 * 60 * 24 * 7

    def __post_init__(self) -> None:
        self._client = redis.Redis.from_url(self.redis_url, decode_responses=True)
        self.key = f"{self.key_prefix}:turn:{self.turn_id}:events"

    def append(self, event: TurnEvent) -> None:
        pipe = self._client.pipeline()
        pipe.rpush(self.key, event.model_dump_json())
        pipe.expire(self.key, self.ttl_seconds)
        pipe.execute()

    def exists(self) -> bool:
        return bool(self._client.exists(self.key))

    def iter_events(self, *, after_seq: int = 0) -> list[TurnEvent]:
        """Load the events whose ``seq`` is greater than ``after_seq``."""

        events = (TurnEvent.model_validate_json(line) for line in self._client.lrange(self.key, 0, -1))
        return [event for event in events if event.seq > after_seq]
