"""Tests for the fixed-window rate limiter."""

from paperwriter.core.rate_limiter import RateLimiter, client_key, get_polish_rate_limiter, polish_rate_limiter


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_allows_up_to_limit_then_blocks():
    limiter = RateLimiter(max_requests=20, window_seconds=60, clock=FakeClock())

    results = [limiter.check_limit("1.2.3.4") for _ in range(21)]

    assert results[:20] == [True] * 20
    assert results[20] is False


def test_window_resets_after_expiry():
    clock = FakeClock()
    limiter = RateLimiter(max_requests=2, window_seconds=60, clock=clock)
    assert limiter.check_limit("ip")
    assert limiter.check_limit("ip")
    assert not limiter.check_limit("ip")

    # Still blocked at the exact reset instant
    clock.now = 60.0
    assert not limiter.check_limit("ip")

    clock.now = 60.5
    assert limiter.check_limit("ip")
    assert limiter.get_stats("ip")["requests_in_window"] == 1


def test_keys_are_independent():
    limiter = RateLimiter(max_requests=1, window_seconds=60, clock=FakeClock())
    assert limiter.check_limit("a")
    assert not limiter.check_limit("a")
    assert limiter.check_limit("b")


def test_reset():
    limiter = RateLimiter(max_requests=1, window_seconds=60, clock=FakeClock())
    limiter.check_limit("a")
    limiter.check_limit("b")

    limiter.reset("a")
    assert limiter.check_limit("a")
    assert not limiter.check_limit("b")

    limiter.reset()
    assert limiter.check_limit("b")


def test_stats():
    limiter = RateLimiter(max_requests=5, window_seconds=60, clock=FakeClock())
    limiter.check_limit("a")
    limiter.check_limit("a")

    stats = limiter.get_stats("a")
    assert stats["requests_in_window"] == 2
    assert stats["requests_remaining"] == 3
    assert limiter.get_stats("unseen")["requests_in_window"] == 0


def test_default_polish_limiter():
    assert get_polish_rate_limiter() is polish_rate_limiter
    assert polish_rate_limiter.max_requests == 20
    assert polish_rate_limiter.window_seconds == 60


def test_client_key():
    assert client_key({"cf-connecting-ip": "203.0.113.7"}) == "203.0.113.7"
    assert client_key({}) == "unknown"
