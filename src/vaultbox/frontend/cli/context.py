"""Small helper to build a VaultBox app context for the CLI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from vaultbox.core.config import Settings
from vaultbox.core.storage import Storage
from vaultbox.core.vault_manager import VaultManager
from vaultbox.core.vault_store import VaultStore
from vaultbox.database.connection import DatabaseConnection


@dataclass
class AppContext:
    """Container for runtime objects the CLI needs."""

    db: DatabaseConnection
    store: VaultStore
    manager: VaultManager
    settings: Settings
    first_run: bool = False

    def close(self) -> None:
        self.store.lock()
        self.db.close()


def build_context(settings: Optional[Settings] = None) -> AppContext:
    """
    Open the SQLite records and wire a store and manager over them.

    ``first_run`` is True when no vault record exists yet; the CLI then
    offers ``init`` instead of asking for an existing password. The store is
    always returned locked: no key survives between invocations.
    """
    settings = settings or Settings.from_env()

    db = DatabaseConnection(str(settings.db_path))
    db.initialize()

    store = VaultStore(storage=Storage(db), kdf=settings.build_kdf())
    manager = VaultManager(store)

    return AppContext(
        db=db,
        store=store,
        manager=manager,
        settings=settings,
        first_run=not store.exists(),
    )
