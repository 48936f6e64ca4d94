import pytest

from pa_events import SubscriptionError
from startup import StartupSynchronizer, StartupTimeout


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.now += seconds


def test_gives_up_after_budget():
    clock = FakeClock()
    attempts = []

    def never():
        attempts.append(clock.now)
        clock.now += 0.01
        raise SubscriptionError("Connection refused")

    sync = StartupSynchronizer(timeout=30, retry_interval=1, clock=clock, sleep=clock.sleep)
    with pytest.raises(StartupTimeout):
        sync.connect(never)

    assert 29 <= len(attempts) <= 31
    assert clock.now - 1000.0 < 32


def test_returns_first_successful_connection():
    clock = FakeClock()
    results = iter([SubscriptionError("down"), SubscriptionError("down"), "feed"])

    def opener():
        r = next(results)
        if isinstance(r, Exception):
            raise r
        return r

    sync = StartupSynchronizer(timeout=30, retry_interval=1, clock=clock, sleep=clock.sleep)
    assert sync.connect(opener) == "feed"
    assert clock.now == 1002.0


def test_other_errors_propagate():
    def broken():
        raise ValueError("bug")

    sync = StartupSynchronizer(clock=FakeClock(), sleep=lambda s: None)
    with pytest.raises(ValueError):
        sync.connect(broken)


def test_budget_spans_reconnects():
    clock = FakeClock()
    sync = StartupSynchronizer(timeout=3, retry_interval=1, clock=clock, sleep=clock.sleep)

    assert sync.connect(lambda: "feed") == "feed"
    sync.wait_retry()
    sync.wait_retry()
    sync.wait_retry()
    with pytest.raises(StartupTimeout):
        sync.wait_retry()
