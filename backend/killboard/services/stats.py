"""Stats Store: the per-player kill/death ledger.

Counters are keyed by display name and outlive roster churn. Every method
runs under one lock so a kill and an unrelated death touching the same
player can never lose an update.
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import List, Optional, Tuple

from killboard import db
from killboard.models import PlayerStat


@dataclass(frozen=True)
class PlayerStats:
    name: str
    kills: int = 0
    deaths: int = 0

    @classmethod
    def from_row(cls, row: PlayerStat) -> 'PlayerStats':
        return cls(name=row.name, kills=row.kills or 0, deaths=row.deaths or 0)

    def to_dict(self):
        return {'name': self.name, 'kills': self.kills, 'deaths': self.deaths}


class StatsStore:
    def __init__(self, lock=None):
        self._lock = lock or threading.RLock()

    @contextmanager
    def _unit(self):
        # one transaction per call; the session is closed before the lock is
        # released (in-memory sqlite shares one connection across threads)
        with self._lock:
            try:
                yield db.session
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise
            finally:
                db.session.close()

    def _row(self, name: str) -> PlayerStat:
        row = PlayerStat.query.filter_by(name=name).first()
        if row is None:
            row = PlayerStat(name=name, kills=0, deaths=0)
            db.session.add(row)
            db.session.flush()
        return row

    def get(self, name: str) -> Optional[PlayerStats]:
        with self._unit():
            row = PlayerStat.query.filter_by(name=name).first()
            return PlayerStats.from_row(row) if row else None

    def get_or_create(self, name: str) -> PlayerStats:
        with self._unit():
            return PlayerStats.from_row(self._row(name))

    def ensure_all(self, names) -> List[PlayerStats]:
        """get_or_create for a batch of names in a single commit."""
        with self._unit():
            return [PlayerStats.from_row(self._row(n)) for n in names]

    def record_kill(self, killer: str, victim: str) -> Tuple[PlayerStats, PlayerStats]:
        with self._unit():
            k = self._row(killer)
            v = self._row(victim)
            k.kills += 1
            v.deaths += 1
            return PlayerStats.from_row(k), PlayerStats.from_row(v)

    def record_death(self, victim: str, cause: Optional[str] = None) -> PlayerStats:
        # cause is informational; only the victim's counter moves
        with self._unit():
            v = self._row(victim)
            v.deaths += 1
            return PlayerStats.from_row(v)

    def all_stats(self) -> List[PlayerStats]:
        """Every tracked player, most kills first; ties keep first-seen order."""
        with self._unit():
            rows = PlayerStat.query.order_by(PlayerStat.kills.desc(), PlayerStat.id.asc()).all()
            return [PlayerStats.from_row(r) for r in rows]

    def reset(self) -> None:
        with self._unit():
            PlayerStat.query.delete()
