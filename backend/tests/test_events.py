import pytest

from killboard.services.events import DEATH_CAUSES, EventGenerator, InvalidEventError
from killboard.services.roster import RosterSynchronizer
from killboard.services.state import DashboardState
from conftest import StubSource


class FixedRng:
    """random.Random stand-in whose draw is scripted."""

    def __init__(self, draw):
        self.draw = draw

    def random(self):
        return self.draw

    def sample(self, population, k):
        return list(population)[:k]

    def choice(self, seq):
        return seq[0]


def _setup(names, rng=None, kill_p=0.4, environment_p=0.1):
    state = DashboardState()
    RosterSynchronizer(state, StubSource(names)).refresh()
    return state, EventGenerator(state, kill_p=kill_p, environment_p=environment_p, rng=rng)


def test_kill_updates_counters_and_heads_the_log(flask_app):
    state, gen = _setup(['Alice', 'Bob'])
    event = gen.trigger_kill('Alice', 'Bob')
    assert state.stats.get('Alice').kills == 1
    assert state.stats.get('Bob').deaths == 1
    assert event.killer == 'Alice' and event.victim == 'Bob'
    assert state.recent_deaths()[0].id == event.id
    roster = {e.name: e for e in state.roster_snapshot()}
    assert roster['Alice'].kills == 1
    assert roster['Bob'].deaths == 1


@pytest.mark.parametrize('name', ['Alice', 'Bob', 'Zed'])
def test_self_kill_rejected_and_store_unchanged(flask_app, name):
    state, gen = _setup(['Alice', 'Bob'])
    before = [s.to_dict() for s in state.stats.all_stats()]
    with pytest.raises(InvalidEventError):
        gen.trigger_kill(name, name)
    assert [s.to_dict() for s in state.stats.all_stats()] == before
    assert state.recent_deaths() == []


def test_kill_needs_two_players_online(flask_app):
    state, gen = _setup(['Alice'])
    with pytest.raises(InvalidEventError):
        gen.trigger_kill('Alice', 'Bob')
    assert state.stats.get('Bob') is None
    with pytest.raises(InvalidEventError):
        gen.random_kill()


def test_environmental_death_has_no_killer(flask_app):
    state, gen = _setup(['Alice', 'Bob'])
    event = gen.trigger_environmental_death('Bob', 'drowned')
    assert event.killer is None
    assert event.cause == 'drowned'
    assert event.message == 'Bob drowned'
    assert state.stats.get('Bob').deaths == 1
    assert state.stats.get('Bob').kills == 0


def test_environmental_death_picks_a_cause_when_missing(flask_app):
    state, gen = _setup(['Alice'], rng=FixedRng(0.0))
    event = gen.trigger_environmental_death('Alice')
    assert event.cause == DEATH_CAUSES[0]


def test_random_kill_uses_distinct_roster_players(flask_app):
    state, gen = _setup(['Alice', 'Bob', 'Cara'])
    for _ in range(20):
        event = gen.random_kill()
        assert event.killer != event.victim
        assert {event.killer, event.victim} <= {'Alice', 'Bob', 'Cara'}


@pytest.mark.parametrize('draw,expected', [
    (0.0, 'kill'),
    (0.39, 'kill'),
    (0.4, 'death'),
    (0.49, 'death'),
    (0.5, None),
    (0.99, None),
])
def test_simulation_single_draw_ranges(flask_app, draw, expected):
    state, gen = _setup(['Alice', 'Bob'], rng=FixedRng(draw))
    event = gen.simulate_tick()
    if expected is None:
        assert event is None
        assert state.recent_deaths() == []
    elif expected == 'kill':
        assert event.killer == 'Alice' and event.victim == 'Bob'
    else:
        assert event.killer is None and event.victim == 'Alice'
    # at most one event per tick
    assert len(state.recent_deaths()) <= 1


def test_simulation_skips_kill_with_empty_roster(flask_app):
    state, gen = _setup([], rng=FixedRng(0.1))
    assert gen.simulate_tick() is None


def test_probabilities_must_fit_one_draw(flask_app):
    with pytest.raises(ValueError):
        EventGenerator(DashboardState(), kill_p=0.8, environment_p=0.3)


def test_kill_publishes_stats_then_death(flask_app):
    state, gen = _setup(['Alice', 'Bob'])
    sub = state.channel.subscribe('viewer')
    sub.drain()
    event = gen.trigger_kill('Alice', 'Bob')
    notes = sub.drain()
    assert [n.kind for n in notes] == ['stats_changed', 'stats_changed', 'death_occurred']
    assert notes[0].payload == {'name': 'Alice', 'kills': 1, 'deaths': 0}
    assert notes[1].payload == {'name': 'Bob', 'kills': 0, 'deaths': 1}
    assert notes[2].payload['id'] == event.id


def test_rejected_kill_is_not_broadcast(flask_app):
    state, gen = _setup(['Alice', 'Bob'])
    sub = state.channel.subscribe('viewer')
    sub.drain()
    with pytest.raises(InvalidEventError):
        gen.trigger_kill('Bob', 'Bob')
    assert sub.drain() == []
