import threading
from datetime import datetime

import pytest

from killboard.services.scheduler import DailyResetTask, PeriodicTask, seconds_until_midnight


def test_seconds_until_midnight():
    assert seconds_until_midnight(datetime(2026, 10, 18, 23, 59, 0)) == 60
    assert seconds_until_midnight(datetime(2026, 10, 18, 0, 0, 0)) == 24 * 3600
    assert seconds_until_midnight(datetime(2026, 12, 31, 12, 0, 0)) == 12 * 3600


def test_daily_reset_delay_tracks_wall_clock(flask_app):
    task = DailyResetTask(flask_app, lambda: None, clock=lambda: datetime(2026, 10, 18, 22, 0, 0))
    assert task.next_delay() == 2 * 3600
    late = DailyResetTask(flask_app, lambda: None, clock=lambda: datetime(2026, 10, 18, 23, 59, 59, 900000))
    assert late.next_delay() == 1.0


def test_run_once_survives_errors(flask_app):
    calls = []

    def boom():
        calls.append(1)
        raise RuntimeError('source exploded')

    task = PeriodicTask(flask_app, 'boom', 1, boom)
    task.run_once()
    task.run_once()
    assert calls == [1, 1]


def test_run_once_has_app_context(flask_app):
    from flask import current_app
    seen = []
    task = PeriodicTask(flask_app, 'ctx', 1, lambda: seen.append(current_app.name))
    task.run_once()
    assert seen == [flask_app.name]


def test_daily_reset_clears_deaths(online):
    online.generator.trigger_kill('Alice', 'Bob')
    task = DailyResetTask(None, online.state.reset_deaths)
    task.fn()
    assert online.state.recent_deaths() == []


def _zone(name):
    zoneinfo = pytest.importorskip('zoneinfo')
    try:
        return zoneinfo.ZoneInfo(name)
    except zoneinfo.ZoneInfoNotFoundError:
        pytest.skip(f"no tz data for {name}")


def test_seconds_until_midnight_counts_dst_shifts():
    ny = _zone('America/New_York')
    # clocks go back an hour overnight: 23.5h of wall time, 24.5h of real time
    assert seconds_until_midnight(datetime(2026, 11, 1, 0, 30, tzinfo=ny)) == 24.5 * 3600
    # clocks go forward an hour overnight
    assert seconds_until_midnight(datetime(2026, 3, 8, 0, 30, tzinfo=ny)) == 22.5 * 3600


def test_daily_reset_waits_again_after_early_wakeup(flask_app):
    now = [datetime(2026, 10, 18, 22, 0, 0)]
    task = DailyResetTask(flask_app, lambda: None, clock=lambda: now[0])
    task.next_delay()
    now[0] = datetime(2026, 10, 18, 23, 0, 0)
    assert not task.due()
    assert task.next_delay() == 3600
    now[0] = datetime(2026, 10, 19, 0, 0, 0, 500000)
    assert task.due()
    task.next_delay()
    assert not task.due()


def test_periodic_task_runs_until_stopped(flask_app):
    ticks = []
    ticked = threading.Event()

    def tick():
        ticks.append(1)
        if len(ticks) >= 2:
            ticked.set()

    task = PeriodicTask(flask_app, 'tick', 0.01, tick)
    task.start()
    thread = task._task
    assert task.running
    assert ticked.wait(2.0)
    task.stop()
    thread.join(timeout=2.0)
    assert not thread.is_alive()
    assert not task.running
    assert len(ticks) >= 2
