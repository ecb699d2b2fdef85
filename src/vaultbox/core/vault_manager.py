"""
VaultManager for VaultBox: the glue a frontend talks to.

Applies the consumed policies around :class:`VaultStore`: every password
attempt goes through the rate limiter, every user supplied field through the
input validator, every content change runs inside a store transaction that requires a live
session and ends with a full save.
"""

import logging
from typing import Optional

from .exceptions import (
    InvalidInputError,
    PasswordMismatchError,
    RateLimitedError,
    StorageError,
)
from .models import PersonRecord
from .vault_store import DEFAULT_SESSION_MS, VaultStore
from ..security import validation
from ..security.ratelimit import RateLimiter
from ..security.session import MINUTE_MS, ExpiryWatcher
from ..security.validation import InputValidator

logger = logging.getLogger(__name__)

EXTENDED_SESSION_MS = 30 * MINUTE_MS
EXTEND_STEP_MINUTES = 30


class VaultManager:
    """High-level vault operations over a store, a rate limiter and a validator."""

    def __init__(
        self,
        store: VaultStore,
        limiter: Optional[RateLimiter] = None,
        validator: Optional[InputValidator] = None,
    ):
        self.store = store
        self.limiter = limiter if limiter is not None else RateLimiter()
        self.validator = validator if validator is not None else InputValidator()

    @property
    def vault(self):
        return self.store.vault

    # ------------------------------------------------------------------
    # Gates
    # ------------------------------------------------------------------

    def _check(self, value, max_len, field):
        if not self.validator.validate(value, max_len):
            raise InvalidInputError(f"Invalid {field}")

    def _commit(self):
        if not self.store.save():
            raise StorageError("Could not save the vault")

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def authenticate(self, password, confirm=None, extended=False) -> bool:
        """
        Open the vault, or create it on first use.

        First use requires ``confirm`` to match ``password``. The session
        lasts 60 seconds, or 30 minutes when ``extended``.
        """
        if not self.limiter.check_rate("auth"):
            raise RateLimitedError("Too many attempts. Wait a minute.")
        self._check(password, validation.MAX_PASSWORD, "password")

        duration = EXTENDED_SESSION_MS if extended else DEFAULT_SESSION_MS
        if self.store.exists():
            return self.store.open(password, duration)

        if password != confirm:
            raise PasswordMismatchError("Passwords do not match")
        return self.store.create(password, duration)

    def re_authenticate(self, password) -> bool:
        if not self.limiter.check_rate("reauth"):
            raise RateLimitedError("Too many attempts. Wait a minute.")
        self._check(password, validation.MAX_PASSWORD, "password")
        return self.store.re_authenticate(password)

    def extend_session(self) -> bool:
        return self.store.extend(EXTEND_STEP_MINUTES)

    def logout(self) -> None:
        self.store.lock()

    def enforce_expiry(self) -> bool:
        """Enforcement tick: lock a session that outlived its expiry. True if it locked."""
        return self.store.expire()

    def start_expiry_watcher(self, interval: float = 5.0) -> ExpiryWatcher:
        watcher = ExpiryWatcher(self.enforce_expiry, interval=interval)
        watcher.start()
        return watcher

    def format_remaining(self) -> str:
        """Countdown as MM:SS, or "Expired"."""
        if not self.store.is_authenticated():
            return "Expired"
        remaining = self.store.remaining()
        if remaining <= 0:
            return "Expired"
        total_seconds = remaining // 1000
        return f"{total_seconds // 60:02d}:{total_seconds % 60:02d}"

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def add_block(self, name):
        with self.store.transaction() as vault:
            self._check(name, validation.MAX_BLOCK_NAME, "block name")
            block = vault.add_block(name)
            self._commit()
            return block

    def delete_block(self, block_id):
        with self.store.transaction() as vault:
            vault.delete_block(block_id)
            self._commit()

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------

    def _check_password_fields(self, site, username, secret):
        self._check(site, validation.MAX_SITE, "site")
        self._check(username, validation.MAX_USERNAME, "username")
        self._check(secret, validation.MAX_SECRET, "password value")

    def add_password(self, block_id, site, username, secret):
        with self.store.transaction() as vault:
            self._check_password_fields(site, username, secret)
            entry = vault.add_password(block_id, site, username, secret)
            self._commit()
            return entry

    def update_password(self, entry_id, block_id, site, username, secret):
        with self.store.transaction() as vault:
            self._check_password_fields(site, username, secret)
            entry = vault.update_password(entry_id, block_id, site, username, secret)
            self._commit()
            return entry

    def delete_password(self, entry_id):
        with self.store.transaction() as vault:
            vault.delete_password(entry_id)
            self._commit()

    def reveal_password(self, entry_id) -> str:
        with self.store.transaction() as vault:
            return vault.get_password(entry_id).secret

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    def save_note(self, block_id, title, content, note_id=None):
        """Create a note, or overwrite ``note_id`` when given."""
        with self.store.transaction() as vault:
            self._check(title, validation.MAX_NOTE_TITLE, "title")
            self._check(content, validation.MAX_NOTE_CONTENT, "content")
            if note_id is not None:
                note = vault.update_note(note_id, block_id, title, content)
            else:
                note = vault.add_note(block_id, title, content)
            self._commit()
            return note

    def delete_note(self, note_id):
        with self.store.transaction() as vault:
            vault.delete_note(note_id)
            self._commit()

    # ------------------------------------------------------------------
    # Persons
    # ------------------------------------------------------------------

    def save_person(self, person: PersonRecord):
        with self.store.transaction() as vault:
            for name in ("full_name", "national_id", "birthdate", "email", "email_redirect_link", "address"):
                self._check(getattr(person, name), validation.MAX_PERSON_FIELD, name.replace("_", " "))
            vault.add_person(person)
            self._commit()
            return person

    def delete_person(self, person_id):
        with self.store.transaction() as vault:
            vault.delete_person(person_id)
            self._commit()

    # ------------------------------------------------------------------
    # Config
    # ------------------------------------------------------------------

    def set_email_service(self, choice) -> bool:
        self._check(choice, validation.MAX_CONFIG_VALUE, "email service")
        self.store.config.email_service = choice
        return self.store.save_config()
