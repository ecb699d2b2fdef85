"""Unit tests for the attempt rate limiter."""

import pytest

from vaultbox.security.ratelimit import RateLimiter


@pytest.fixture
def limiter(clock):
    return RateLimiter(clock=clock)


def test_five_allowed_sixth_denied(limiter):
    results = [limiter.check_rate("auth") for _ in range(6)]
    assert results == [True, True, True, True, True, False]
    assert limiter.attempts("auth") == 6


def test_new_window_after_expiry(limiter, clock):
    for _ in range(6):
        limiter.check_rate("auth")
    clock.advance(60_001)
    assert limiter.check_rate("auth") is True
    assert limiter.attempts("auth") == 1


def test_window_is_anchored_to_first_attempt(limiter, clock):
    limiter.check_rate("auth")
    clock.advance(50_000)
    for _ in range(4):
        limiter.check_rate("auth")
    # still inside the window opened by the first attempt
    assert limiter.check_rate("auth") is False
    clock.advance(10_001)
    assert limiter.check_rate("auth") is True


def test_exactly_at_window_boundary_still_counts(limiter, clock):
    for _ in range(5):
        limiter.check_rate("auth")
    clock.advance(60_000)
    assert limiter.check_rate("auth") is False


def test_keys_are_independent(limiter):
    for _ in range(6):
        limiter.check_rate("auth")
    assert limiter.check_rate("reauth") is True


def test_custom_limits(limiter):
    assert limiter.check_rate("k", max_attempts=1) is True
    assert limiter.check_rate("k", max_attempts=1) is False


def test_reset_one_key(limiter):
    for _ in range(6):
        limiter.check_rate("auth")
    limiter.check_rate("reauth")
    limiter.reset("auth")
    assert limiter.attempts("auth") == 0
    assert limiter.attempts("reauth") == 1


def test_reset_all(limiter):
    limiter.check_rate("a")
    limiter.check_rate("b")
    limiter.reset()
    assert limiter.attempts("a") == 0
    assert limiter.attempts("b") == 0


def test_default_clock_is_wall_time():
    assert RateLimiter().check_rate("x") is True
