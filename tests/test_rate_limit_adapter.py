"""Unit tests for the in-memory sliding-window rate limiter."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from writing_coach.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from writing_coach.core.model_access import AccessTier


def _limiter(clock, **kwargs) -> InMemorySlidingWindowRateLimiter:
    params = {"anonymous_limit": 2, "authenticated_limit": 4, "window_seconds": 60, "clock": clock}
    params.update(kwargs)
    return InMemorySlidingWindowRateLimiter(**params)


def test_allows_up_to_limit_in_same_window(clock) -> None:
    limiter = _limiter(clock)

    assert limiter.check("k", AccessTier.FREE).limited is False
    result = limiter.check("k", AccessTier.FREE)
    assert result.limited is False
    assert result.current_count == 2
    assert result.remaining == 0


def test_blocks_the_call_after_the_limit(clock) -> None:
    limiter = _limiter(clock)
    limiter.check("k", AccessTier.FREE)
    clock.advance(10)
    limiter.check("k", AccessTier.FREE)

    blocked = limiter.check("k", AccessTier.FREE)
    assert blocked.limited is True
    assert blocked.limit == 2
    # Oldest entry ages out 50s from now.
    assert blocked.retry_after_seconds == 50
    assert 0 < blocked.retry_after_seconds <= limiter.window_seconds


def test_rejected_calls_are_not_recorded(clock) -> None:
    limiter = _limiter(clock, anonymous_limit=1)
    limiter.check("k", AccessTier.FREE)
    for _ in range(5):
        assert limiter.check("k", AccessTier.FREE).limited is True

    clock.advance(60.5)
    assert limiter.check("k", AccessTier.FREE).limited is False


def test_window_slides_one_entry_at_a_time(clock) -> None:
    limiter = _limiter(clock)
    limiter.check("k", AccessTier.FREE)  # t=1000
    clock.advance(30)
    limiter.check("k", AccessTier.FREE)  # t=1030
    assert limiter.check("k", AccessTier.FREE).limited is True

    # First entry has left the window, second has not.
    clock.advance(31)
    assert limiter.check("k", AccessTier.FREE).limited is False
    assert limiter.check("k", AccessTier.FREE).limited is True


def test_entry_exactly_window_old_still_counts(clock) -> None:
    limiter = _limiter(clock, anonymous_limit=1)
    limiter.check("k", AccessTier.FREE)
    clock.advance(60)

    blocked = limiter.check("k", AccessTier.FREE)
    assert blocked.limited is True
    assert blocked.retry_after_seconds == 1


def test_authenticated_tier_gets_higher_limit(clock) -> None:
    limiter = _limiter(clock)
    results = [limiter.check("user:1", AccessTier.AUTHENTICATED) for _ in range(5)]

    assert [r.limited for r in results] == [False, False, False, False, True]
    assert limiter.limit_for(AccessTier.PREMIUM) == 4
    assert limiter.limit_for(AccessTier.FREE) == 2


def test_isolated_by_key(clock) -> None:
    limiter = _limiter(clock, anonymous_limit=1)

    assert limiter.check("ip:1.1.1.1", AccessTier.FREE).limited is False
    assert limiter.check("ip:1.1.1.1", AccessTier.FREE).limited is True
    assert limiter.check("ip:2.2.2.2", AccessTier.FREE).limited is False


def test_concurrent_calls_admit_exactly_the_limit() -> None:
    limiter = InMemorySlidingWindowRateLimiter(
        anonymous_limit=5, authenticated_limit=20, window_seconds=3600
    )
    barrier = threading.Barrier(50)

    def call() -> bool:
        barrier.wait()
        return limiter.check("ip:9.9.9.9", AccessTier.FREE).limited

    with ThreadPoolExecutor(max_workers=50) as pool:
        outcomes = list(pool.map(lambda _: call(), range(50)))

    assert outcomes.count(False) == 5
    assert outcomes.count(True) == 45


def test_sweep_drops_idle_keys_only(clock) -> None:
    limiter = _limiter(clock)
    limiter.check("old", AccessTier.FREE)
    clock.advance(61)
    limiter.check("fresh", AccessTier.FREE)

    assert limiter.sweep() == 1
    assert limiter.tracked_keys() == 1


def test_swept_key_starts_from_a_fresh_window(clock) -> None:
    limiter = _limiter(clock, anonymous_limit=1)
    limiter.check("k", AccessTier.FREE)
    clock.advance(61)
    limiter.sweep()

    assert limiter.tracked_keys() == 0
    assert limiter.check("k", AccessTier.FREE).limited is False
    assert limiter.check("k", AccessTier.FREE).limited is True


def test_cleanup_runs_from_check_once_interval_elapsed(clock) -> None:
    limiter = _limiter(clock, cleanup_interval_seconds=600)
    for i in range(3):
        limiter.check(f"k{i}", AccessTier.FREE)

    clock.advance(100)
    limiter.check("other", AccessTier.FREE)
    assert limiter.tracked_keys() == 4

    clock.advance(600)
    limiter.check("other", AccessTier.FREE)
    assert limiter.tracked_keys() == 1


@pytest.mark.parametrize(
    "kwargs",
    [
        {"anonymous_limit": 0, "authenticated_limit": 1, "window_seconds": 60},
        {"anonymous_limit": 1, "authenticated_limit": 0, "window_seconds": 60},
        {"anonymous_limit": 1, "authenticated_limit": 1, "window_seconds": 0},
    ],
)
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        InMemorySlidingWindowRateLimiter(**kwargs)


def test_invalid_check_args(clock) -> None:
    limiter = _limiter(clock)

    with pytest.raises(ValueError):
        limiter.check("", AccessTier.FREE)
