"""The transient "death screen" shown for each new death."""

import threading
from typing import Callable, Optional

IDLE = 'idle'
SHOWING = 'showing'


class DeathOverlay:
    """Idle -> Showing on a death, back to Idle after ``dwell`` seconds.

    A newer death replaces the one on screen and restarts the dwell; there
    is never a queue of overlays. Each show bumps a generation counter so an
    expiry scheduled for an older death is ignored even if its timer has
    already fired.
    """

    def __init__(self, dwell: float = 4.0, timer_factory=threading.Timer,
                 on_show: Optional[Callable[[dict], None]] = None,
                 on_hide: Optional[Callable[[], None]] = None):
        self.dwell = float(dwell)
        self._timer_factory = timer_factory
        self.on_show = on_show
        self.on_hide = on_hide
        self.state = IDLE
        self.current = None
        self._generation = 0
        self._timer = None
        self._lock = threading.Lock()

    def show(self, event: dict) -> None:
        with self._lock:
            self._cancel_timer()
            self._generation += 1
            gen = self._generation
            self.state = SHOWING
            self.current = event
            self._timer = self._timer_factory(self.dwell, self._expire, args=(gen,))
            self._timer.daemon = True
            self._timer.start()
        if self.on_show:
            self.on_show(event)

    def dismiss(self) -> None:
        with self._lock:
            self._cancel_timer()
            self._generation += 1
            was_showing = self.state == SHOWING
            self.state = IDLE
            self.current = None
        if was_showing and self.on_hide:
            self.on_hide()

    def _expire(self, gen: int) -> None:
        with self._lock:
            if gen != self._generation or self.state != SHOWING:
                return
            self.state = IDLE
            self.current = None
            self._timer = None
        if self.on_hide:
            self.on_hide()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
