"""Denylist gate applied to every user supplied string before it reaches the vault."""

import re

DANGEROUS_PATTERNS = [
    re.compile(r"<[^>]*>", re.IGNORECASE),  # any HTML tag
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),  # inline event handlers
    re.compile(r"data:[^,]*script", re.IGNORECASE),
    re.compile(r"<script", re.IGNORECASE),
    re.compile(r"<iframe", re.IGNORECASE),
    re.compile(r"<object", re.IGNORECASE),
    re.compile(r"<embed", re.IGNORECASE),
    re.compile(r"<img", re.IGNORECASE),
    re.compile(r"<svg", re.IGNORECASE),
    re.compile(r"eval\s*\(", re.IGNORECASE),
    re.compile(r"expression\s*\(", re.IGNORECASE),
    re.compile(r"import\s+", re.IGNORECASE),
    re.compile(r"require\s*\(", re.IGNORECASE),
]

# Field length limits used by the manager
MAX_PASSWORD = 128
MAX_BLOCK_NAME = 50
MAX_SITE = 100
MAX_USERNAME = 200
MAX_SECRET = 500
MAX_NOTE_TITLE = 100
MAX_NOTE_CONTENT = 5000
MAX_PERSON_FIELD = 200
MAX_CONFIG_VALUE = 50


class InputValidator:
    def __init__(self, patterns=None):
        self.patterns = list(patterns) if patterns is not None else DANGEROUS_PATTERNS

    def validate(self, value, max_len: int = 1000) -> bool:
        """Return True if ``value`` is a string within ``max_len`` matching no denylisted pattern."""
        if not isinstance(value, str):
            return False
        if len(value) > max_len:
            return False
        return not any(p.search(value) for p in self.patterns)
