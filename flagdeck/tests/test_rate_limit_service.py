# FlagDeck/flagdeck/tests/test_rate_limit_service.py
"""Unit tests for the fixed-window RateLimiter."""


from datetime import datetime, timedelta, timezone

from flagdeck.services.rate_limit_service import RateLimiter


class _Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


START = datetime(2024, 5, 10, 12, 0, 42, tzinfo=timezone.utc)
NEXT_MINUTE = datetime(2024, 5, 10, 12, 1, tzinfo=timezone.utc)


def test_hits_within_budget_count_down():
    limiter = RateLimiter(limit_per_minute=3, clock=_Clock(START))

    statuses = [limiter.hit("c1") for _ in range(3)]

    assert [s.remaining for s in statuses] == [2, 1, 0]
    assert not any(s.limited for s in statuses)
    assert statuses[0].reset == NEXT_MINUTE


def test_request_over_budget_is_limited():
    limiter = RateLimiter(limit_per_minute=2, clock=_Clock(START))
    limiter.hit("c1")
    limiter.hit("c1")

    status = limiter.hit("c1")

    assert status.limited is True
    assert status.remaining == 0


def test_clients_have_independent_budgets():
    limiter = RateLimiter(limit_per_minute=1, clock=_Clock(START))
    limiter.hit("c1")

    assert limiter.hit("c1").limited is True
    assert limiter.hit("c2").limited is False


def test_window_resets_on_minute_boundary():
    clock = _Clock(START)
    limiter = RateLimiter(limit_per_minute=1, clock=clock)
    limiter.hit("c1")
    assert limiter.hit("c1").limited is True

    clock.now = NEXT_MINUTE
    status = limiter.hit("c1")

    assert status.limited is False
    assert status.reset == NEXT_MINUTE + timedelta(minutes=1)


def test_disabled_limiter_never_limits():
    limiter = RateLimiter(limit_per_minute=1, enabled=False, clock=_Clock(START))

    for _ in range(5):
        status = limiter.hit("c1")
    assert status.limited is False
    assert status.remaining == 1


def test_headers():
    status = RateLimiter(limit_per_minute=10, clock=_Clock(START)).hit("c1")

    assert status.headers() == {
        "X-RateLimit-Limit": "10",
        "X-RateLimit-Remaining": "9",
        "X-RateLimit-Reset": str(int(NEXT_MINUTE.timestamp())),
    }
