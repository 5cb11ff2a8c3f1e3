"""Client-side mirror of the dashboard state.

A viewer installs a baseline fetched over HTTP, then replays push
notifications on top of it. Every presented view is re-derived from the
mirror after each change, so recomputing is always safe.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from killboard.services.broadcast import DEATH_LOG_RESET, DEATH_OCCURRED, ROSTER_CHANGED, STATS_CHANGED

logger = logging.getLogger(__name__)


def rank_by_kills(roster: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    # sorted() is stable with reverse=True, so equal kills keep roster order
    return sorted(roster, key=lambda p: p.get('kills', 0), reverse=True)


def death_text(event: Dict[str, Any]) -> str:
    """Phrase shown between the victim and killer names."""
    if event.get('killer'):
        return 'was slain by'
    return event.get('cause') or 'died'


def _clock_time(ts: Optional[str]) -> str:
    try:
        return datetime.fromisoformat(ts).astimezone().strftime('%H:%M')
    except (TypeError, ValueError):
        return ''


@dataclass(frozen=True)
class Views:
    player_count: int
    leaderboard: List[Dict[str, Any]]
    top_three: List[Dict[str, Any]]
    ranks_four_to_ten: List[Dict[str, Any]]
    roster_grid: List[Dict[str, Any]]
    death_feed: List[Dict[str, Any]]


def derive_views(roster: List[Dict[str, Any]], deaths: List[Dict[str, Any]]) -> Views:
    ranked = rank_by_kills(roster)
    board = [dict(p, rank=i + 1) for i, p in enumerate(ranked)]
    feed = [
        {
            'id': d.get('id'),
            'time': _clock_time(d.get('timestamp')),
            'victim': d.get('victim'),
            'text': death_text(d),
            'killer': d.get('killer'),
        }
        for d in deaths
    ]
    return Views(
        player_count=len(roster),
        leaderboard=board,
        top_three=board[:3],
        ranks_four_to_ten=board[3:10],
        roster_grid=[{'name': p.get('name'), 'kills': p.get('kills', 0), 'deaths': p.get('deaths', 0)} for p in roster],
        death_feed=feed,
    )


class ClientMirror:
    def __init__(self, retention: int = 100, on_change: Optional[Callable[[Views], None]] = None):
        self.retention = int(retention)
        self.on_change = on_change
        self.roster: List[Dict[str, Any]] = []
        self.deaths: List[Dict[str, Any]] = []
        self.views = derive_views(self.roster, self.deaths)

    def bootstrap(self, players, deaths) -> Views:
        self.roster = [dict(p) for p in players]
        self.deaths = [dict(d) for d in deaths][: self.retention]
        return self._rederive()

    def apply(self, kind: str, payload: Optional[Dict[str, Any]] = None) -> bool:
        """Apply one notification. Returns False when it changed nothing."""
        payload = payload or {}
        handler = {
            ROSTER_CHANGED: self._on_roster,
            STATS_CHANGED: self._on_stats,
            DEATH_OCCURRED: self._on_death,
            DEATH_LOG_RESET: self._on_reset,
        }.get(kind)
        if handler is None:
            logger.debug(f"[mirror-skip] unknown notification {kind!r}")
            return False
        if not handler(payload):
            return False
        self._rederive()
        return True

    def _on_roster(self, payload) -> bool:
        self.roster = [dict(p) for p in payload.get('players', [])]
        return True

    def _on_stats(self, payload) -> bool:
        # Session ids are regenerated every poll; only the name is stable.
        name = payload.get('name')
        for p in self.roster:
            if p.get('name') == name:
                p['kills'] = payload.get('kills', p.get('kills', 0))
                p['deaths'] = payload.get('deaths', p.get('deaths', 0))
                return True
        logger.debug(f"[mirror-skip] stats for {name!r} not in roster")
        return False

    def _on_death(self, payload) -> bool:
        event_id = payload.get('id')
        if event_id is not None and any(d.get('id') == event_id for d in self.deaths):
            return False
        self.deaths.insert(0, dict(payload))
        del self.deaths[self.retention:]
        return True

    def _on_reset(self, payload) -> bool:
        self.deaths = []
        return True

    def _rederive(self) -> Views:
        self.views = derive_views(self.roster, self.deaths)
        if self.on_change:
            self.on_change(self.views)
        return self.views
