"""In-memory attempt counter guarding password prompts against brute force.

Windows are anchored to the first attempt, not rolling: the first attempt
opens a window, later attempts inside it count up, and once ``window_ms`` has
passed since the opening attempt the next one starts a new window. State lives
for the lifetime of the process and is never persisted.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Optional, Tuple

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_WINDOW_MS = 60_000


class RateLimiter:
    def __init__(self, clock: Optional[Callable[[], int]] = None):
        self._clock = clock or (lambda: int(time.time() * 1000))
        # key -> (count, first attempt ms)
        self._attempts: Dict[str, Tuple[int, int]] = {}
        self._lock = threading.Lock()

    def check_rate(self, key: str, max_attempts: int = DEFAULT_MAX_ATTEMPTS,
                   window_ms: int = DEFAULT_WINDOW_MS) -> bool:
        """Record one attempt under ``key`` and return whether it is allowed."""
        now = self._clock()
        with self._lock:
            entry = self._attempts.get(key)
            if entry is None or now - entry[1] > window_ms:
                self._attempts[key] = (1, now)
                return True
            count = entry[0] + 1
            self._attempts[key] = (count, entry[1])
            return count <= max_attempts

    def attempts(self, key: str) -> int:
        with self._lock:
            entry = self._attempts.get(key)
            return entry[0] if entry else 0

    def reset(self, key: Optional[str] = None) -> None:
        with self._lock:
            if key is None:
                self._attempts.clear()
            else:
                self._attempts.pop(key, None)
