"""Session expiry arithmetic and cooperative auto-lock polling.

:class:`SessionClock` is pure: it only computes expiry values, it never stores
them. The vault store decides what to persist. All times are epoch
milliseconds.

:class:`ExpiryWatcher` polls a callback on a background thread. Like any
polling timer it locks "soon after" expiry, not exactly at it; it is an
inactivity convenience and not a defence against someone who can already read
process memory.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

MINUTE_MS = 60 * 1000
MAX_SESSION_MS = 60 * MINUTE_MS
REAUTH_WINDOW_MS = 60 * 1000


@dataclass(frozen=True)
class SessionClock:
    expiry: int = 0

    def remaining(self, now: int) -> int:
        return max(0, self.expiry - now)

    def is_live(self, now: int) -> bool:
        return now < self.expiry

    def extend(self, now: int, add_ms: int, cap_ms: int = MAX_SESSION_MS) -> int:
        """Return the new expiry: remaining time plus ``add_ms``, capped at ``now + cap_ms``."""
        return min(now + self.remaining(now) + add_ms, now + cap_ms)


class ExpiryWatcher:
    """Call ``tick`` every ``interval`` seconds until stopped."""

    def __init__(self, tick: Callable[[], object], interval: float = 5.0):
        self._tick = tick
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="vaultbox-expiry", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self._tick()
            except Exception:
                # keep polling; a failing tick must not kill auto-lock
                logger.exception("Expiry tick failed")
