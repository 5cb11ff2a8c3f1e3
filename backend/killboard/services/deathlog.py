"""Bounded, newest-first log of death events."""

import time
import uuid
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional


def format_death_message(victim: str, killer: Optional[str] = None, cause: Optional[str] = None) -> str:
    if killer:
        return f"{victim} was slain by {killer}"
    return f"{victim} {cause or 'died'}"


def iso_timestamp(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


@dataclass(frozen=True)
class DeathEvent:
    id: str
    victim: str
    timestamp: float
    killer: Optional[str] = None
    cause: Optional[str] = None

    @property
    def message(self) -> str:
        return format_death_message(self.victim, self.killer, self.cause)

    def to_dict(self):
        return {
            'id': self.id,
            'victim': self.victim,
            'killer': self.killer,
            'cause': self.cause,
            'timestamp': iso_timestamp(self.timestamp),
            'message': self.message,
        }


class DeathLog:
    def __init__(self, limit: int = 100, clock=time.time):
        self.limit = int(limit)
        self._clock = clock
        self._events = deque(maxlen=self.limit)
        self._last_ts = 0.0

    def __len__(self):
        return len(self._events)

    def create(self, victim: str, killer: Optional[str] = None, cause: Optional[str] = None) -> DeathEvent:
        # Wall clocks can step backwards; event times may not.
        ts = max(self._clock(), self._last_ts)
        self._last_ts = ts
        event = DeathEvent(id=uuid.uuid4().hex, victim=victim, killer=killer, cause=cause, timestamp=ts)
        self._events.appendleft(event)
        return event

    def recent(self) -> List[DeathEvent]:
        return list(self._events)

    def clear(self) -> None:
        self._events.clear()
