"""Shared fixtures: a controllable millisecond clock and fast KDF settings."""

import pytest

from vaultbox.security.kdf import KeyDerivationService

START_MS = 1_700_000_000_000


class FakeClock:
    """Callable epoch-ms clock that only moves when told to."""

    def __init__(self, now=START_MS):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fast_kdf():
    """PBKDF2 with a low iteration count so tests stay quick."""
    return KeyDerivationService(iterations=1000)
