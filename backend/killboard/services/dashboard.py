from flask import current_app

from .events import EventGenerator
from .roster import DemoRosterSource, RosterSynchronizer, build_roster_source
from .state import DashboardState


class Dashboard:
    """Wires state, roster synchronizer and event generator for one app."""

    def __init__(self, config, source=None, rng=None):
        self.state = DashboardState(
            death_log_limit=int(config.get('DEATH_LOG_LIMIT', 100)),
            buffer_size=int(config.get('SUBSCRIBER_BUFFER', 256)),
        )
        self.source = source or build_roster_source(config, rng=rng)
        self.synchronizer = RosterSynchronizer(self.state, self.source)
        self.generator = EventGenerator(
            self.state,
            kill_p=float(config.get('SIM_KILL_PROBABILITY', 0.4)),
            environment_p=float(config.get('SIM_ENVIRONMENT_PROBABILITY', 0.1)),
            rng=rng,
        )
        self.tasks = []

    @property
    def channel(self):
        return self.state.channel

    @property
    def supports_join(self) -> bool:
        return isinstance(self.source, DemoRosterSource)

    def force_join(self):
        """Demo only: add a guest to the simulated server and re-poll.

        Returns the guest's roster entry, or None when a refresh already in
        flight kept this one from running; the guest shows up on the next poll.
        """
        name = self.source.add_guest()
        entries = self.synchronizer.refresh(fetch=self.source.online)
        for entry in entries or []:
            if entry.name == name:
                return entry.to_dict()
        return None

    def shutdown(self) -> None:
        for t in self.tasks:
            t.stop()
        self.state.channel.close_all()


def get_dashboard() -> Dashboard:
    return current_app.extensions['killboard']
