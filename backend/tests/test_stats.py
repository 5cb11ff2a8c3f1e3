import random

from killboard.services.stats import StatsStore


def test_get_or_create_starts_at_zero(flask_app):
    store = StatsStore()
    s = store.get_or_create('Alice')
    assert (s.name, s.kills, s.deaths) == ('Alice', 0, 0)
    # second call returns the same ledger row, not a fresh one
    store.record_death('Alice')
    assert store.get_or_create('Alice').deaths == 1


def test_identity_is_case_sensitive(flask_app):
    store = StatsStore()
    store.record_kill('alice', 'Bob')
    assert store.get('Alice') is None
    assert store.get('alice').kills == 1


def test_record_kill_moves_both_counters(flask_app):
    store = StatsStore()
    killer, victim = store.record_kill('Alice', 'Bob')
    assert killer.kills == 1 and killer.deaths == 0
    assert victim.kills == 0 and victim.deaths == 1


def test_record_death_only_touches_victim(flask_app):
    store = StatsStore()
    store.get_or_create('Alice')
    v = store.record_death('Bob', 'drowned')
    assert v.deaths == 1 and v.kills == 0
    assert store.get('Alice').deaths == 0


def test_counters_equal_attributed_events(flask_app):
    rng = random.Random(42)
    names = ['Alice', 'Bob', 'Cara', 'Dan']
    store = StatsStore()
    expected = {n: [0, 0] for n in names}
    for _ in range(200):
        if rng.random() < 0.6:
            killer, victim = rng.sample(names, 2)
            store.record_kill(killer, victim)
            expected[killer][0] += 1
            expected[victim][1] += 1
        else:
            victim = rng.choice(names)
            store.record_death(victim, 'fell')
            expected[victim][1] += 1
    for n in names:
        s = store.get(n)
        assert [s.kills, s.deaths] == expected[n]


def test_all_stats_sorted_by_kills_with_stable_ties(flask_app):
    store = StatsStore()
    for n in ['A', 'B', 'C']:
        store.get_or_create(n)
    store.record_kill('C', 'A')
    store.record_kill('C', 'B')
    store.record_kill('B', 'A')
    store.record_kill('A', 'B')
    assert [s.name for s in store.all_stats()] == ['C', 'A', 'B']


def test_reset_forgets_everyone(flask_app):
    store = StatsStore()
    store.record_kill('Alice', 'Bob')
    store.reset()
    assert store.all_stats() == []
