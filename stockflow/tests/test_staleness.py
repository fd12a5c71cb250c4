"""Tests for the refresh-on-foreground policy."""

from datetime import timedelta

from stockflow.data.staleness import StalenessRefreshPolicy


class Counter:
    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1


def test_no_refresh_within_threshold(clock):
    refresh = Counter()
    policy = StalenessRefreshPolicy(refresh, threshold=300, clock=clock)
    clock.advance(seconds=300)
    assert policy.on_foreground() is False
    assert refresh.calls == 0


def test_refresh_after_threshold(clock):
    refresh = Counter()
    policy = StalenessRefreshPolicy(refresh, threshold=timedelta(minutes=5), clock=clock)
    clock.advance(minutes=5, seconds=1)
    assert policy.on_foreground() is True
    assert refresh.calls == 1


def test_every_event_moves_last_active(clock):
    refresh = Counter()
    policy = StalenessRefreshPolicy(refresh, threshold=300, clock=clock)
    for _ in range(3):
        clock.advance(minutes=4)
        policy.on_foreground()
    assert refresh.calls == 0
    assert policy.last_active == clock()


def test_failed_refresh_does_not_retrigger(clock):
    def broken():
        raise RuntimeError("offline")

    policy = StalenessRefreshPolicy(broken, threshold=60, clock=clock)
    clock.advance(minutes=2)
    try:
        policy.on_foreground()
    except RuntimeError:
        pass
    assert policy.is_stale() is False


def test_touch(clock):
    policy = StalenessRefreshPolicy(Counter(), threshold=60, clock=clock)
    clock.advance(minutes=2)
    assert policy.is_stale()
    policy.touch()
    assert not policy.is_stale()
