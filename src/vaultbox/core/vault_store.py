"""
VaultStore: the locked/unlocked state machine around one encrypted vault.

States:
    UNINITIALIZED  no vault record persisted
    LOCKED         record persisted, no live session
    UNLOCKED       key held and expiry in the future

The store is the only owner of the derived key, the decrypted :class:`Vault`
and the persisted envelope. Every public method takes an instance lock, so
operations on one store run one at a time; key and vault are only swapped in
together after a fully successful decrypt.

Operations called in the wrong state are logged no-ops returning False. A
wrong password is not an error either: ``open``/``re_authenticate`` return
False and leave everything as it was.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from enum import Enum
from typing import Callable, Iterator, Optional

from .exceptions import InvalidInputError, NotAuthenticatedError, StorageError
from .migration import MigrationPolicy, build_initial_vault, repair_vault
from .models import Config, Vault
from .storage import Storage
from ..security.cipher import AuthenticatedCipher, EncryptedEnvelope, now_ms
from ..security.kdf import KeyDerivationService, SecretKey, generate_salt
from ..security.memory import zeroize
from ..security.session import MAX_SESSION_MS, MINUTE_MS, REAUTH_WINDOW_MS, SessionClock

logger = logging.getLogger(__name__)

DEFAULT_SESSION_MS = 60 * 1000


class VaultState(Enum):
    UNINITIALIZED = "uninitialized"
    LOCKED = "locked"
    UNLOCKED = "unlocked"


class VaultStore:
    """Encrypted vault with a time-boxed in-memory session.

    Args:
        storage: persisted records; defaults to an in-memory backend
        kdf: key derivation used when creating a new vault. Existing vaults
            are always opened with the parameters stored in their record.
        cipher: AEAD used for every save
        policy: reserved block ids and seed notes for create/repair
        clock: returns epoch milliseconds; injectable for tests
    """

    def __init__(
        self,
        storage: Optional[Storage] = None,
        kdf: Optional[KeyDerivationService] = None,
        cipher: Optional[AuthenticatedCipher] = None,
        policy: Optional[MigrationPolicy] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.storage = storage if storage is not None else Storage()
        self.kdf = kdf if kdf is not None else KeyDerivationService()
        self._clock = clock or now_ms
        self.cipher = cipher if cipher is not None else AuthenticatedCipher(clock=self._clock)
        self.policy = policy if policy is not None else MigrationPolicy()
        self.config = Config()
        self.vault: Optional[Vault] = None

        self._key: Optional[SecretKey] = None
        self._salt: Optional[bytes] = None
        self._session_kdf: Optional[KeyDerivationService] = None
        self._expiry = 0
        self._lock = threading.RLock()

    def __repr__(self):
        return f"VaultStore(state={self.state.value})"

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> VaultState:
        with self._lock:
            if self.is_authenticated():
                return VaultState.UNLOCKED
            return VaultState.LOCKED if self.exists() else VaultState.UNINITIALIZED

    @property
    def expiry(self) -> int:
        return self._expiry

    @property
    def has_session(self) -> bool:
        """A key and vault are held in memory, whether or not they expired."""
        return self._key is not None

    def exists(self) -> bool:
        try:
            return self.storage.has_vault()
        except StorageError as e:
            logger.error("Cannot read vault record: %s", e)
            return False

    def is_authenticated(self) -> bool:
        """Key held and the session not expired. Re-evaluated on every call."""
        with self._lock:
            return self._key is not None and SessionClock(self._expiry).is_live(self._clock())

    def remaining(self) -> int:
        """Milliseconds left in the session; 0 when locked or expired."""
        with self._lock:
            if self._key is None:
                return 0
            return SessionClock(self._expiry).remaining(self._clock())

    def has_persisted_session_hint(self) -> bool:
        """Whether the clear-text expiry hint is still in the future.

        Only ever used to render a hint. It never touches the envelope and never
        grants access: after a restart the key is gone and ``open`` is required.
        """
        try:
            hint = self.storage.load_session_hint()
        except StorageError as e:
            logger.warning("Cannot read session hint: %s", e)
            return False
        return hint is not None and hint > self._clock()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def create(self, password, session_duration_ms: int = DEFAULT_SESSION_MS) -> bool:
        """Create and persist a brand new vault, then unlock it."""
        with self._lock:
            if self._key is not None or self.exists():
                logger.warning("create() ignored: a vault already exists")
                return False

            salt = generate_salt()
            key = self.kdf.derive(password, salt)
            vault = build_initial_vault(self.policy)

            if not self._write(vault, key, salt, self.kdf):
                key.wipe()
                return False

            self._adopt(key, vault, salt, self.kdf)
            self._set_expiry(self._clock() + session_duration_ms)
            self._load_config()
            logger.info("Vault created and unlocked")
            return True

    def open(self, password, session_duration_ms: int = DEFAULT_SESSION_MS) -> bool:
        """Unlock the persisted vault. False on a wrong password or unreadable record.

        A held session that already expired is replaced, but only once the new
        password has been proven; a failed attempt leaves it as it was.
        """
        with self._lock:
            if self.is_authenticated():
                logger.warning("open() ignored: a session is already active")
                return False
            if not password:
                raise InvalidInputError("Password must not be empty")

            opened = self._try_decrypt(password)
            if opened is None:
                logger.info("Vault open failed")
                return False
            key, payload, salt, kdf = opened

            try:
                vault = Vault.from_dict(payload)
            except (KeyError, TypeError, AttributeError, ValueError):
                key.wipe()
                logger.info("Vault open failed")
                return False

            changed = repair_vault(vault, self.policy)
            self._drop_session()
            self._adopt(key, vault, salt, kdf)
            if changed:
                logger.info("Vault repaired during open; re-persisting")
                self._write(self.vault, self._key, self._salt, self._session_kdf)

            self._set_expiry(self._clock() + session_duration_ms)
            self._load_config()
            logger.info("Vault unlocked")
            return True

    def re_authenticate(self, password) -> bool:
        """Prove the password again without reloading the in-memory vault.

        Allowed while a session is held, including after it expired but before
        ``lock()`` ran. Success grants a short fixed window.
        """
        with self._lock:
            if self._key is None or self._salt is None:
                logger.warning("re_authenticate() ignored: no session to refresh")
                return False
            if not password:
                raise InvalidInputError("Password must not be empty")

            opened = self._try_decrypt(password, salt=self._salt, kdf=self._session_kdf)
            if opened is None:
                logger.info("Re-authentication failed")
                return False
            key = opened[0]

            old, self._key = self._key, key
            if old is not key:
                old.wipe()
            self._set_expiry(self._clock() + REAUTH_WINDOW_MS)
            logger.info("Re-authenticated")
            return True

    def save(self) -> bool:
        """Re-encrypt the whole vault and overwrite the persisted record."""
        with self._lock:
            if not self.is_authenticated() or self.vault is None:
                logger.warning("save() ignored: vault is not unlocked")
                return False
            return self._write(self.vault, self._key, self._salt, self._session_kdf)

    def extend(self, minutes_to_add: int = 30) -> bool:
        """Push expiry out by ``minutes_to_add``, never past 60 minutes from now."""
        with self._lock:
            if isinstance(minutes_to_add, bool) or not isinstance(minutes_to_add, int) or minutes_to_add <= 0:
                raise InvalidInputError("minutes_to_add must be a positive integer")
            if not self.is_authenticated():
                logger.warning("extend() ignored: vault is not unlocked")
                return False
            now = self._clock()
            expiry = SessionClock(self._expiry).extend(now, minutes_to_add * MINUTE_MS, MAX_SESSION_MS)
            self._set_expiry(expiry)
            return True

    def expire(self) -> bool:
        """Lock a session that outlived its expiry. True if it locked.

        The check and the lock happen under one hold of the instance lock, so
        a session refreshed or re-opened in between is left alone.
        """
        with self._lock:
            if self._key is None or self.is_authenticated():
                return False
            logger.info("Session expired; locking")
            self.lock()
            return True

    @contextmanager
    def transaction(self) -> Iterator[Vault]:
        """Hold the instance lock around a read-modify-save of the vault.

        Raises :class:`NotAuthenticatedError` if the session is not live on
        entry. ``lock()`` and ``expire()`` from other threads wait until the
        block exits, so an edit is never applied to a vault that was locked
        underneath it.
        """
        with self._lock:
            if not self.is_authenticated() or self.vault is None:
                raise NotAuthenticatedError("Authentication required")
            yield self.vault

    def lock(self) -> None:
        """Forget the key and the decrypted vault and clear the session hint."""
        with self._lock:
            self._drop_session()
            self._expiry = 0
            try:
                self.storage.clear_session_hint()
            except StorageError as e:
                logger.warning("Cannot clear session hint: %s", e)
            logger.info("Vault locked")

    def save_config(self) -> bool:
        """Persist the clear-text config record."""
        with self._lock:
            try:
                self.storage.save_config(self.config)
                return True
            except StorageError as e:
                logger.error("Cannot save config: %s", e)
                return False

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _try_decrypt(self, password, salt=None, kdf=None):
        """Derive a key from the stored record and decrypt it.

        Returns ``(key, payload, salt, kdf)`` or None. Every failure (missing or
        unreadable record, bad parameters, wrong password, tampering) is None.
        """
        try:
            record = self.storage.load_vault_record()
        except StorageError as e:
            logger.error("Cannot load vault record: %s", e)
            return None
        if record is None:
            logger.warning("No vault record persisted")
            return None

        try:
            envelope = EncryptedEnvelope.from_record(record)
            if kdf is None:
                kdf = KeyDerivationService.from_params(record.get("kdf"))
            if salt is None:
                salt = envelope.salt
            key = kdf.derive(password, salt)
        except InvalidInputError:
            return None

        payload = self.cipher.decrypt(envelope, key)
        if not isinstance(payload, dict):
            key.wipe()
            return None
        return key, payload, salt, kdf

    def _write(self, vault, key, salt, kdf) -> bool:
        envelope = self.cipher.encrypt(vault.to_dict(), key, salt)
        record = envelope.to_record()
        record["kdf"] = kdf.params()
        try:
            self.storage.save_vault_record(record)
            return True
        except StorageError as e:
            logger.error("Cannot save vault record: %s", e)
            return False

    def _drop_session(self) -> None:
        if self._key is not None:
            self._key.wipe()
        self._key = None
        if self.vault is not None:
            _scrub_vault(self.vault)
        self.vault = None
        self._salt = None
        self._session_kdf = None

    def _adopt(self, key, vault, salt, kdf) -> None:
        self._key = key
        self.vault = vault
        self._salt = salt
        self._session_kdf = kdf

    def _set_expiry(self, expiry: int) -> None:
        self._expiry = expiry
        try:
            if expiry > self._clock():
                self.storage.save_session_hint(expiry)
            else:
                self.storage.clear_session_hint()
        except StorageError as e:
            # the hint is advisory; the in-memory expiry is what counts
            logger.warning("Cannot persist session hint: %s", e)

    def _load_config(self) -> None:
        try:
            self.config = self.storage.load_config()
        except StorageError as e:
            logger.warning("Cannot load config, using defaults: %s", e)
            self.config = Config()


def _scrub_vault(vault: Vault) -> None:
    # strings are immutable; dropping every reference is the best we can do
    for records in (vault.blocks, vault.passwords, vault.notes, vault.persons):
        zeroize(records)
