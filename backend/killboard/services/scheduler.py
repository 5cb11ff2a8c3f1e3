"""Background timers: roster polling, demo simulation and the daily reset.

Tasks run via socketio.start_background_task so they follow whatever
async mode Socket.IO picked. Each pushes an app context per run and
survives exceptions from the work it drives.
"""

import logging
import threading
from datetime import datetime, time, timedelta, timezone
from typing import Callable, Optional

from killboard import socketio

logger = logging.getLogger(__name__)


def seconds_until_midnight(now: Optional[datetime] = None) -> float:
    """Real seconds until the next local midnight, DST shifts included.

    Naive datetimes are read as system local time.
    """
    now = now or datetime.now()
    midnight = datetime.combine(now.date() + timedelta(days=1), time.min, tzinfo=now.tzinfo)
    return (midnight.astimezone(timezone.utc) - now.astimezone(timezone.utc)).total_seconds()


class PeriodicTask:
    def __init__(self, app, name: str, interval: float, fn: Callable[[], object]):
        self.app = app
        self.name = name
        self.interval = float(interval)
        self.fn = fn
        self._stop = threading.Event()
        self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._stop.is_set()

    def start(self) -> None:
        if self._task is not None:
            return
        self._stop.clear()
        self._task = socketio.start_background_task(self._run)
        logger.info(f"[task-start] {self.name} every {self.interval}s")

    def stop(self) -> None:
        self._stop.set()

    def run_once(self) -> None:
        with self.app.app_context():
            try:
                self.fn()
            except Exception:
                logger.exception(f"[task-error] {self.name}")

    def next_delay(self) -> float:
        return self.interval

    def due(self) -> bool:
        return True

    def _run(self) -> None:
        while not self._stop.wait(self.next_delay()):
            if self.due():
                self.run_once()
        self._task = None


class DailyResetTask(PeriodicTask):
    """Fires at every local wall-clock midnight."""

    def __init__(self, app, fn: Callable[[], object], clock: Callable[[], datetime] = datetime.now):
        super().__init__(app, 'daily-reset', 24 * 3600, fn)
        self._clock = clock
        self._due_on = None

    def next_delay(self) -> float:
        now = self._clock()
        self._due_on = now.date() + timedelta(days=1)
        # floor so a wake-up a hair before midnight cannot spin
        return max(1.0, seconds_until_midnight(now))

    def due(self) -> bool:
        # a wait can end before the calendar day has turned; sleep again then
        return self._due_on is None or self._clock().date() >= self._due_on


def start_background_services(app) -> list:
    """Start timers for the dashboard attached to ``app``; returns the tasks."""
    from .dashboard import get_dashboard

    cfg = app.config
    with app.app_context():
        dashboard = get_dashboard()
        # Populate the roster before the first tick so early viewers see players
        dashboard.synchronizer.refresh()

    tasks = [PeriodicTask(app, 'roster-refresh', cfg.get('ROSTER_REFRESH_SEC', 5), dashboard.synchronizer.refresh)]
    if cfg.get('SIMULATION_ENABLED', True):
        tasks.append(PeriodicTask(app, 'simulation', cfg.get('SIMULATION_TICK_SEC', 5), dashboard.generator.simulate_tick))
    if cfg.get('DAILY_RESET_ENABLED', True):
        tasks.append(DailyResetTask(app, dashboard.state.reset_deaths))
    for t in tasks:
        t.start()
    dashboard.tasks = tasks
    return tasks
