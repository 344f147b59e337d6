import random

from memory_game.services.games.registry import SessionRegistry
from memory_game.services.games.session import GameSession


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _registry(high_scores, scheduler, clock, idle_ttl):
    def factory(session_id, rng=None):
        return GameSession(high_scores, scheduler, rng=rng or random.Random(0))
    return SessionRegistry(factory, idle_ttl=idle_ttl, clock=clock)


def test_idle_sessions_are_dropped_on_next_create(high_scores, scheduler):
    clock = FakeClock()
    registry = _registry(high_scores, scheduler, clock, idle_ttl=60)
    old_id, old = registry.create()
    old.start_game()
    clock.now = 61
    new_id, _ = registry.create()
    assert registry.get(old_id) is None
    assert registry.get(new_id) is not None
    assert len(registry) == 1
    # the dropped session's timer is cancelled
    scheduler.advance(5)
    assert old.state.time_remaining == 60


def test_lookups_keep_a_session_alive(high_scores, scheduler):
    clock = FakeClock()
    registry = _registry(high_scores, scheduler, clock, idle_ttl=60)
    sid, _ = registry.create()
    clock.now = 50
    assert registry.get(sid) is not None
    clock.now = 100
    assert registry.prune() == []
    clock.now = 111
    assert registry.prune() == [sid]
    assert len(registry) == 0


def test_no_ttl_keeps_sessions(high_scores, scheduler):
    clock = FakeClock()
    registry = _registry(high_scores, scheduler, clock, idle_ttl=None)
    sid, _ = registry.create()
    clock.now = 10 ** 6
    registry.create()
    assert registry.get(sid) is not None


def test_discard_closes_session(high_scores, scheduler):
    registry = _registry(high_scores, scheduler, FakeClock(), idle_ttl=None)
    sid, session = registry.create()
    session.start_game()
    assert registry.discard(sid) is True
    assert registry.discard(sid) is False
    scheduler.advance(3)
    assert session.state.time_remaining == 60
