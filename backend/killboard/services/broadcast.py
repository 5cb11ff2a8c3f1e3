"""Fan-out of state-changed notifications to connected viewers.

Every viewer owns a Subscription: a bounded buffer that drops its oldest
notification when full, so a stalled socket never holds up anyone else.
Publishing only appends to those buffers; draining them onto the wire is
the transport's job (see killboard.socketio_events).
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

ROSTER_CHANGED = 'roster_changed'
STATS_CHANGED = 'stats_changed'
DEATH_OCCURRED = 'death_occurred'
DEATH_LOG_RESET = 'death_log_reset'

KINDS = (ROSTER_CHANGED, STATS_CHANGED, DEATH_OCCURRED, DEATH_LOG_RESET)


@dataclass(frozen=True)
class Notification:
    kind: str
    payload: Dict[str, Any] = field(default_factory=dict)


def roster_changed(entries) -> Notification:
    return Notification(ROSTER_CHANGED, {'players': [e.to_dict() for e in entries]})


def stats_changed(name: str, kills: int, deaths: int) -> Notification:
    return Notification(STATS_CHANGED, {'name': name, 'kills': kills, 'deaths': deaths})


def death_occurred(event) -> Notification:
    return Notification(DEATH_OCCURRED, event.to_dict())


def death_log_reset() -> Notification:
    return Notification(DEATH_LOG_RESET, {})


class Subscription:
    def __init__(self, sub_id: str, maxlen: int = 256, on_ready: Optional[Callable[['Subscription'], None]] = None):
        self.sub_id = sub_id
        self.maxlen = int(maxlen)
        self.dropped = 0
        self.closed = False
        self._on_ready = on_ready
        self._queue = deque()
        self._mutex = threading.Lock()
        self._ready = threading.Event()

    def push(self, note: Notification) -> None:
        if self.closed:
            return
        with self._mutex:
            if len(self._queue) >= self.maxlen:
                self._queue.popleft()
                self.dropped += 1
                logger.warning(f"[ws-drop] sub={self.sub_id} dropped={self.dropped} buffer={self.maxlen}")
            self._queue.append(note)
            self._ready.set()
        if self._on_ready:
            self._on_ready(self)

    def drain(self) -> List[Notification]:
        with self._mutex:
            notes = list(self._queue)
            self._queue.clear()
            self._ready.clear()
        return notes

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._ready.wait(timeout)

    def close(self) -> None:
        self.closed = True
        # Wake a pump blocked in wait() so it can exit
        self._ready.set()

    def __len__(self):
        return len(self._queue)


class BroadcastChannel:
    """Registry of subscriptions.

    snapshot_fn returns the current roster entries; each new subscriber
    gets a roster_changed built from it before any later notification.
    Pass the state lock as ``lock`` so the handshake snapshot and the
    registration happen atomically with respect to publishes.
    """

    def __init__(self, snapshot_fn: Callable[[], list], buffer_size: int = 256, lock=None):
        self._snapshot_fn = snapshot_fn
        self.buffer_size = int(buffer_size)
        self._lock = lock or threading.RLock()
        self._subs: Dict[str, Subscription] = {}

    @property
    def subscriber_count(self) -> int:
        return len(self._subs)

    def subscribe(self, sub_id: str, on_ready=None) -> Subscription:
        with self._lock:
            old = self._subs.pop(sub_id, None)
            if old:
                old.close()
            sub = Subscription(sub_id, maxlen=self.buffer_size, on_ready=on_ready)
            self._subs[sub_id] = sub
            sub.push(roster_changed(self._snapshot_fn()))
            return sub

    def unsubscribe(self, sub_id: str) -> None:
        with self._lock:
            sub = self._subs.pop(sub_id, None)
        if sub:
            sub.close()

    def publish(self, note: Notification) -> None:
        with self._lock:
            for sub in list(self._subs.values()):
                sub.push(note)

    def close_all(self) -> None:
        with self._lock:
            subs = list(self._subs.values())
            self._subs.clear()
        for sub in subs:
            sub.close()
