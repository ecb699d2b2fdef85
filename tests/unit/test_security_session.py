"""
Unit tests for session expiry arithmetic and the auto-lock watcher.
"""

import threading

import pytest
from unittest.mock import MagicMock

from vaultbox.security.session import (
    MAX_SESSION_MS,
    MINUTE_MS,
    REAUTH_WINDOW_MS,
    ExpiryWatcher,
    SessionClock,
)

NOW = 1_000_000


# ==============================================================================
# Tests: SessionClock
# ==============================================================================

def test_constants():
    assert MAX_SESSION_MS == 60 * MINUTE_MS
    assert REAUTH_WINDOW_MS == 60_000


def test_remaining_never_negative():
    assert SessionClock(NOW + 500).remaining(NOW) == 500
    assert SessionClock(NOW - 500).remaining(NOW) == 0
    assert SessionClock().remaining(NOW) == 0


def test_is_live_is_strict():
    assert SessionClock(NOW + 1).is_live(NOW)
    assert not SessionClock(NOW).is_live(NOW)


def test_extend_adds_to_remaining():
    clock = SessionClock(NOW + 5 * MINUTE_MS)
    assert clock.extend(NOW, 30 * MINUTE_MS) == NOW + 35 * MINUTE_MS


def test_extend_is_capped():
    # 58 minutes left + 30 would be 88; cap is 60 from now
    clock = SessionClock(NOW + 58 * MINUTE_MS)
    assert clock.extend(NOW, 30 * MINUTE_MS) == NOW + MAX_SESSION_MS


def test_extend_from_expired_starts_at_now():
    assert SessionClock(NOW - MINUTE_MS).extend(NOW, MINUTE_MS) == NOW + MINUTE_MS


def test_extend_custom_cap():
    assert SessionClock(NOW).extend(NOW, 10 * MINUTE_MS, cap_ms=MINUTE_MS) == NOW + MINUTE_MS


def test_session_clock_is_immutable():
    clock = SessionClock(NOW)
    with pytest.raises(Exception):
        clock.expiry = 0


# ==============================================================================
# Tests: ExpiryWatcher
# ==============================================================================

def test_watcher_ticks_until_stopped():
    ticked = threading.Event()
    tick = MagicMock(side_effect=lambda: ticked.set())
    watcher = ExpiryWatcher(tick, interval=0.01)

    watcher.start()
    assert ticked.wait(2.0)
    assert watcher.running
    watcher.stop(timeout=2.0)

    assert not watcher.running
    assert tick.call_count >= 1


def test_watcher_survives_failing_tick():
    calls = []
    done = threading.Event()

    def tick():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("boom")
        done.set()

    watcher = ExpiryWatcher(tick, interval=0.01)
    watcher.start()
    try:
        assert done.wait(2.0)
    finally:
        watcher.stop(timeout=2.0)
    assert len(calls) >= 2


def test_watcher_start_twice_keeps_one_thread():
    watcher = ExpiryWatcher(lambda: None, interval=10)
    watcher.start()
    first = watcher._thread
    watcher.start()
    assert watcher._thread is first
    watcher.stop(timeout=2.0)


def test_watcher_stop_without_start():
    watcher = ExpiryWatcher(lambda: None)
    watcher.stop()
    assert not watcher.running
