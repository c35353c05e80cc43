"""
Property-based tests for the rate limiter.

Within any window at most ``limit`` requests are admitted, and the first
request after a window elapses always starts a fresh count.
"""
import pytest
from hypothesis import example, given, strategies as st, settings

from shiftboard.services.rate_limiter import RateLimiter


class SteppedClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.property
@settings(max_examples=100)
@given(
    limit=st.integers(min_value=1, max_value=10),
    window=st.integers(min_value=1, max_value=120),
    gaps=st.lists(st.floats(min_value=0, max_value=60, allow_nan=False), min_size=1, max_size=60)
)
@example(limit=1, window=1, gaps=[64.0, 64 - 2 ** -46, 0.0])
def test_admissions_per_window_bounded(limit, window, gaps):
    """Replay arrivals against a reference model of the fixed window."""
    clock = SteppedClock()
    limiter = RateLimiter(shards=1, clock=clock)
    window_start = None
    count = 0

    for gap in gaps:
        clock.now += gap
        if window_start is None or clock.now - window_start >= window:
            window_start = clock.now
            count = 0
        count += 1

        decision = limiter.check_and_increment("general:caller", limit, window)

        assert decision.count == count
        assert decision.admitted == (count <= limit)
        if not decision.admitted:
            assert 0 <= decision.retry_after <= window


@pytest.mark.property
@settings(max_examples=50)
@given(
    limit=st.integers(min_value=1, max_value=5),
    callers=st.lists(st.sampled_from(["a", "b", "c", "d"]), min_size=1, max_size=40)
)
def test_callers_do_not_share_quota(limit, callers):
    limiter = RateLimiter(shards=3, clock=SteppedClock())
    seen = {}

    for caller in callers:
        seen[caller] = seen.get(caller, 0) + 1
        decision = limiter.check_and_increment(f"sensitive:{caller}", limit, 60)
        assert decision.admitted == (seen[caller] <= limit)
