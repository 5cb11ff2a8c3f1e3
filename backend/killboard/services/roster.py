"""Roster synchronization against the game server's online list."""

import logging
import random
import threading
import time
import uuid
from typing import List, Optional

import requests

from .state import DashboardState, RosterEntry

logger = logging.getLogger(__name__)


class RosterSourceError(Exception):
    """The online-player list could not be obtained."""


class DemoRosterSource:
    """Simulated game server for demo mode.

    Each poll makes one random draw: below join_p a guest joins, below
    join_p + leave_p a random player leaves, otherwise nothing changes.
    """

    def __init__(self, names=None, seed_count=4, join_p=0.05, leave_p=0.02, rng=None):
        self.rng = rng or random.Random()
        self.join_p = float(join_p)
        self.leave_p = float(leave_p)
        self._online: List[str] = []
        for name in names or []:
            if name not in self._online:
                self._online.append(name)
        if not names:
            for _ in range(int(seed_count)):
                self.add_guest()

    def add_guest(self) -> str:
        while True:
            name = f"Guest_{self.rng.randint(1000, 9999)}"
            if name not in self._online:
                self._online.append(name)
                return name

    def remove(self, name: str) -> None:
        if name in self._online:
            self._online.remove(name)

    def online(self) -> List[str]:
        """Current players without a churn draw."""
        return list(self._online)

    def fetch(self) -> List[str]:
        draw = self.rng.random()
        if draw < self.join_p:
            self.add_guest()
        elif draw < self.join_p + self.leave_p and self._online:
            self.remove(self.rng.choice(self._online))
        return list(self._online)


class HttpRosterSource:
    """Reads online names from a JSON status endpoint.

    Accepted bodies: ["a", "b"], {"players": ["a", {"name": "b"}]} or
    {"players": {"list": [...]}}.
    """

    def __init__(self, url: str, timeout: float = 3.0, session=None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self) -> List[str]:
        try:
            resp = self.session.get(self.url, timeout=self.timeout)
            resp.raise_for_status()
            body = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise RosterSourceError(f"roster query failed: {exc}") from exc
        return _parse_names(body)


def _parse_names(body) -> List[str]:
    players = body
    if isinstance(body, dict):
        players = body.get('players')
        if isinstance(players, dict):
            players = players.get('list')
    if not isinstance(players, list):
        raise RosterSourceError('roster payload has no player list')
    names = []
    for p in players:
        name = p.get('name') if isinstance(p, dict) else p
        if not isinstance(name, str) or not name:
            raise RosterSourceError(f"bad player entry: {p!r}")
        if name not in names:
            names.append(name)
    return names


def build_roster_source(config, rng=None):
    kind = config.get('ROSTER_SOURCE', 'demo')
    if kind == 'http':
        return HttpRosterSource(
            config.get('ROSTER_SOURCE_URL'),
            timeout=float(config.get('ROSTER_SOURCE_TIMEOUT_SEC', 3)),
        )
    if kind == 'demo':
        return DemoRosterSource(
            names=config.get('DEMO_PLAYERS') or None,
            seed_count=int(config.get('DEMO_SEED_COUNT', 4)),
            join_p=float(config.get('DEMO_JOIN_PROBABILITY', 0.05)),
            leave_p=float(config.get('DEMO_LEAVE_PROBABILITY', 0.02)),
            rng=rng,
        )
    raise ValueError(f"unknown ROSTER_SOURCE {kind!r}")


class RosterSynchronizer:
    def __init__(self, state: DashboardState, source, clock=time.time):
        self.state = state
        self.source = source
        self._clock = clock
        self._refresh_lock = threading.Lock()
        # name -> start of the current continuous online stretch
        self._online_since = {}

    @property
    def in_flight(self) -> bool:
        return self._refresh_lock.locked()

    def refresh(self, fetch=None) -> Optional[List[RosterEntry]]:
        """Poll the source and install a freshly built roster.

        Returns None without doing anything when another refresh is still
        running. A failed poll installs an empty roster. ``fetch`` overrides
        the source's own query for this one refresh.
        """
        if not self._refresh_lock.acquire(blocking=False):
            logger.info('[roster-skip] refresh already in flight')
            return None
        try:
            try:
                names = list((fetch or self.source.fetch)())
            except RosterSourceError as exc:
                logger.warning(f"[roster-unavailable] {exc}; clearing roster")
                names = []
            except Exception:
                logger.warning("[roster-unavailable] source raised; clearing roster", exc_info=True)
                names = []
            return self._install(names)
        finally:
            self._refresh_lock.release()

    def _install(self, names: List[str]) -> List[RosterEntry]:
        now = self._clock()
        since = {n: self._online_since.get(n, now) for n in names}
        self._online_since = since
        with self.state.lock:
            stats = self.state.stats.ensure_all(names)
            entries = [
                RosterEntry(
                    name=s.name,
                    session_id=uuid.uuid4().hex,
                    kills=s.kills,
                    deaths=s.deaths,
                    joined_at=since[s.name],
                )
                for s in stats
            ]
            self.state.replace_roster(entries)
        logger.info(f"[roster-refresh] players={len(entries)}")
        return entries
