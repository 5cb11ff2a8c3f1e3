"""The single owner of the dashboard's authoritative state.

Roster, death log and the stats ledger are only changed through
DashboardState, and every change publishes its notification while the
state lock is still held. Subscribers therefore see notifications in
exactly the order the mutations happened.
"""

import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import List, Optional

from .broadcast import (
    BroadcastChannel,
    death_log_reset,
    death_occurred,
    roster_changed,
    stats_changed,
)
from .deathlog import DeathEvent, DeathLog, iso_timestamp
from .stats import StatsStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RosterEntry:
    name: str
    session_id: str
    kills: int
    deaths: int
    joined_at: float

    def to_dict(self):
        return {
            'id': self.session_id,
            'name': self.name,
            'kills': self.kills,
            'deaths': self.deaths,
            'joined_at': iso_timestamp(self.joined_at),
        }


class DashboardState:
    def __init__(self, death_log_limit: int = 100, buffer_size: int = 256, clock=None):
        self.lock = threading.RLock()
        self.stats = StatsStore(lock=self.lock)
        self.deaths = DeathLog(limit=death_log_limit, clock=clock or time.time)
        self.channel = BroadcastChannel(self.roster_snapshot, buffer_size=buffer_size, lock=self.lock)
        self._roster: List[RosterEntry] = []

    # -- reads ---------------------------------------------------------

    def roster_snapshot(self) -> List[RosterEntry]:
        with self.lock:
            return list(self._roster)

    def roster_names(self) -> List[str]:
        with self.lock:
            return [e.name for e in self._roster]

    def recent_deaths(self) -> List[DeathEvent]:
        with self.lock:
            return self.deaths.recent()

    # -- mutations -----------------------------------------------------

    def replace_roster(self, entries: List[RosterEntry]) -> None:
        with self.lock:
            self._roster = list(entries)
            self.channel.publish(roster_changed(self._roster))

    def _sync_counters(self, stats) -> None:
        self._roster = [
            replace(e, kills=stats.kills, deaths=stats.deaths) if e.name == stats.name else e
            for e in self._roster
        ]
        self.channel.publish(stats_changed(stats.name, stats.kills, stats.deaths))

    def apply_kill(self, killer: str, victim: str) -> DeathEvent:
        with self.lock:
            k, v = self.stats.record_kill(killer, victim)
            self._sync_counters(k)
            self._sync_counters(v)
            event = self.deaths.create(victim, killer=killer)
            self.channel.publish(death_occurred(event))
            return event

    def apply_death(self, victim: str, cause: Optional[str]) -> DeathEvent:
        with self.lock:
            v = self.stats.record_death(victim, cause)
            self._sync_counters(v)
            event = self.deaths.create(victim, cause=cause)
            self.channel.publish(death_occurred(event))
            return event

    def reset_deaths(self) -> None:
        with self.lock:
            dropped = len(self.deaths)
            self.deaths.clear()
            self.channel.publish(death_log_reset())
        logger.info(f"[deaths-reset] cleared={dropped}")
