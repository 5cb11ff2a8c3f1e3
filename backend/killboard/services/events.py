"""Kill and death event generation.

Both entry points are shared by demo simulation, the manual test
endpoint and any real game-log feed. Invalid requests raise
InvalidEventError to the caller and never reach subscribers.
"""

import logging
import random
from typing import Optional

from .deathlog import DeathEvent
from .state import DashboardState

logger = logging.getLogger(__name__)

DEATH_CAUSES = [
    'was blown up by Creeper',
    'fell from a high place',
    'tried to swim in lava',
    'was shot by Skeleton',
    'starved to death',
    'suffocated in a wall',
    'drowned',
    'experienced kinetic energy',
    'was slain by Zombie',
    'hit the ground too hard',
]


class InvalidEventError(Exception):
    pass


class EventGenerator:
    def __init__(self, state: DashboardState, kill_p: float = 0.4, environment_p: float = 0.1, rng=None):
        if kill_p < 0 or environment_p < 0 or kill_p + environment_p > 1:
            raise ValueError('kill and environment probabilities must be >= 0 and sum to at most 1')
        self.state = state
        self.kill_p = float(kill_p)
        self.environment_p = float(environment_p)
        self.rng = rng or random.Random()

    def trigger_kill(self, killer: str, victim: str) -> DeathEvent:
        if killer == victim:
            logger.info(f"[event-rejected] self-kill by {killer}")
            raise InvalidEventError(f"{killer} cannot kill themselves")
        with self.state.lock:
            if len(set(self.state.roster_names())) < 2:
                logger.info('[event-rejected] fewer than two players online')
                raise InvalidEventError('At least two players must be online for a kill')
            event = self.state.apply_kill(killer, victim)
        logger.info(f"[event-kill] killer={killer} victim={victim} id={event.id}")
        return event

    def trigger_environmental_death(self, victim: str, cause: Optional[str] = None) -> DeathEvent:
        event = self.state.apply_death(victim, cause or self.rng.choice(DEATH_CAUSES))
        logger.info(f"[event-death] victim={victim} cause={event.cause!r} id={event.id}")
        return event

    def random_kill(self) -> DeathEvent:
        with self.state.lock:
            names = self.state.roster_names()
            if len(names) < 2:
                raise InvalidEventError('No valid killer/victim pair: fewer than two players online')
            killer, victim = self.rng.sample(names, 2)
            return self.trigger_kill(killer, victim)

    def random_death(self) -> DeathEvent:
        with self.state.lock:
            names = self.state.roster_names()
            if not names:
                raise InvalidEventError('No players online')
            return self.trigger_environmental_death(self.rng.choice(names))

    def simulate_tick(self) -> Optional[DeathEvent]:
        """One demo tick: a single draw picks kill, environmental death or nothing."""
        draw = self.rng.random()
        try:
            if draw < self.kill_p:
                return self.random_kill()
            if draw < self.kill_p + self.environment_p:
                return self.random_death()
        except InvalidEventError as exc:
            logger.debug(f"[sim-skip] {exc}")
        return None
