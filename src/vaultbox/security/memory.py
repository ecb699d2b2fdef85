"""Best-effort scrubbing of secrets held in memory.

Python ``str`` and ``bytes`` objects are immutable, so any copy made by the
interpreter, a GUI toolkit or ``getpass`` can outlive these helpers. Only
``bytearray`` buffers are actually overwritten. Treat this as hygiene, not as
a guarantee that a secret is gone.
"""

from __future__ import annotations

import os
from typing import Any


def to_buffer(secret: str | bytes | bytearray) -> bytearray:
    """Copy ``secret`` into a fresh, zeroable buffer."""
    if isinstance(secret, str):
        return bytearray(secret.encode("utf-8"))
    return bytearray(secret)


def zeroize(obj: Any) -> None:
    """Overwrite mutable containers in place.

    - ``bytearray``: overwritten with random bytes, then zeros
    - ``dict``/``list``: children scrubbed recursively, then emptied
    - anything else (``str``, ``bytes``, numbers): nothing can be done
    """
    if isinstance(obj, bytearray):
        obj[:] = os.urandom(len(obj))
        for i in range(len(obj)):
            obj[i] = 0
    elif isinstance(obj, dict):
        for value in obj.values():
            zeroize(value)
        obj.clear()
    elif isinstance(obj, list):
        for value in obj:
            zeroize(value)
        obj.clear()
