"""Runtime settings, read from the environment with sane defaults.

    VAULTBOX_DB_PATH          SQLite file holding the records (default ~/.vaultbox/vault.db)
    VAULTBOX_KDF              pbkdf2-sha256 | argon2id (only used when creating a vault)
    VAULTBOX_KDF_ITERATIONS   PBKDF2 iteration count (default 300000)
    VAULTBOX_LOG_LEVEL        logging level name (default WARNING)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .exceptions import InvalidInputError
from ..security.kdf import PBKDF2_ITERATIONS, PBKDF2_SHA256, KeyDerivationService


def _default_db_path() -> Path:
    return Path.home() / ".vaultbox" / "vault.db"


@dataclass
class Settings:
    db_path: Path = field(default_factory=_default_db_path)
    kdf_algorithm: str = PBKDF2_SHA256
    kdf_iterations: int = PBKDF2_ITERATIONS
    log_level: int = logging.WARNING

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        env = os.environ if environ is None else environ
        settings = cls()
        if env.get("VAULTBOX_DB_PATH"):
            settings.db_path = Path(env["VAULTBOX_DB_PATH"]).expanduser()
        if env.get("VAULTBOX_KDF"):
            settings.kdf_algorithm = env["VAULTBOX_KDF"].strip().lower()
        if env.get("VAULTBOX_KDF_ITERATIONS"):
            try:
                settings.kdf_iterations = int(env["VAULTBOX_KDF_ITERATIONS"])
            except ValueError:
                raise InvalidInputError("VAULTBOX_KDF_ITERATIONS must be an integer")
        if env.get("VAULTBOX_LOG_LEVEL"):
            level = logging.getLevelName(env["VAULTBOX_LOG_LEVEL"].strip().upper())
            if isinstance(level, int):
                settings.log_level = level
        return settings

    def build_kdf(self) -> KeyDerivationService:
        return KeyDerivationService(algorithm=self.kdf_algorithm, iterations=self.kdf_iterations)
