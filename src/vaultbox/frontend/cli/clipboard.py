"""System clipboard handling for revealed secrets.

A copied secret can be wiped again after a delay. The wipe only happens if
the clipboard still holds that exact secret, so anything the user copied in
the meantime is left alone.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

import pyperclip

logger = logging.getLogger(__name__)


def copy_to_clipboard(text: str) -> None:
    """Put ``text`` on the clipboard.

    Raises:
        pyperclip.PyperclipException: If no clipboard mechanism is available.
    """
    pyperclip.copy(text)


def clear_clipboard_if(text: str) -> bool:
    """Empty the clipboard if it still holds ``text``. True if it was cleared."""
    if pyperclip.paste() != text:
        logger.info("Clipboard changed since the copy; leaving it")
        return False
    pyperclip.copy("")
    return True


def clear_after(text: str, seconds: float, sleep: Optional[Callable[[float], None]] = None) -> bool:
    """Wait ``seconds``, then clear ``text`` from the clipboard unless it was replaced."""
    if seconds <= 0:
        return False
    (sleep or time.sleep)(seconds)
    return clear_clipboard_if(text)
