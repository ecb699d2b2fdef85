"""
Persisted records for a single vault

Record Map for reference:
==============================
 - vault          -> {"salt": hex, "data": {"iv": hex, "aad": hex, "data": hex},
                      "timestamp": epoch ms, "kdf": {"algo": ..., ...}}
 - sessionExpiry  -> "<epoch ms>"   (clear text, advisory only)
 - config         -> {"emailServiceChoice": "..."}   (clear text)
==============================
For reference:
> Each record is one value in a key/value backend and every write replaces it whole
> The session hint and the encrypted vault are independent records; reading or
> tampering with the hint discloses nothing about the vault and grants nothing
> No key material is ever written here

Two backends are available: :class:`vaultbox.database.connection.DatabaseConnection`
(SQLite, the default for applications) and :class:`MemoryBackend` (tests and
throwaway sessions). Anything with ``get_value``/``put_value``/``delete_value``
works.
"""

import json
import threading
from typing import Any, Dict, Optional

from .exceptions import StorageError
from .models import Config

VAULT_KEY = "vault"
SESSION_KEY = "sessionExpiry"
CONFIG_KEY = "config"


class MemoryBackend:
    """Dict-backed key/value backend; contents die with the process"""

    def __init__(self):
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get_value(self, key):
        with self._lock:
            return self._data.get(key)

    def put_value(self, key, value):
        with self._lock:
            self._data[key] = value

    def delete_value(self, key):
        with self._lock:
            self._data.pop(key, None)


class Storage:
    """Typed access to the three records on top of a key/value backend"""

    def __init__(self, backend=None):
        self.backend = backend if backend is not None else MemoryBackend()

    # ------------------------------------------------------------------
    # Encrypted vault record
    # ------------------------------------------------------------------

    def has_vault(self) -> bool:
        return self.backend.get_value(VAULT_KEY) is not None

    def load_vault_record(self) -> Optional[Dict[str, Any]]:
        raw = self.backend.get_value(VAULT_KEY)
        if raw is None:
            return None
        try:
            record = json.loads(raw)
        except ValueError as e:
            raise StorageError(f"Vault record is not valid JSON: {e}")
        if not isinstance(record, dict):
            raise StorageError("Vault record is not an object")
        return record

    def save_vault_record(self, record: Dict[str, Any]) -> None:
        self.backend.put_value(VAULT_KEY, json.dumps(record))

    # ------------------------------------------------------------------
    # Session hint
    # ------------------------------------------------------------------

    def load_session_hint(self) -> Optional[int]:
        raw = self.backend.get_value(SESSION_KEY)
        if raw is None:
            return None
        try:
            return int(raw)
        except (TypeError, ValueError):
            return None

    def save_session_hint(self, expiry: int) -> None:
        self.backend.put_value(SESSION_KEY, str(int(expiry)))

    def clear_session_hint(self) -> None:
        self.backend.delete_value(SESSION_KEY)

    # ------------------------------------------------------------------
    # Config
    # ------------------------------------------------------------------

    def load_config(self) -> Config:
        raw = self.backend.get_value(CONFIG_KEY)
        if raw is None:
            return Config()
        try:
            return Config.from_dict(json.loads(raw))
        except ValueError:
            return Config()

    def save_config(self, config: Config) -> None:
        self.backend.put_value(CONFIG_KEY, json.dumps(config.to_dict()))
