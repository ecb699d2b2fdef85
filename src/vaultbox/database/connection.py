"""SQLite backend for the vault's key/value records.

One row per record name. Each thread talks to the file through its own
connection in autocommit mode; writes open an explicit transaction so a
record is either replaced whole or left as it was.
"""

import sqlite3
import threading
from pathlib import Path

from .schema import get_init_schema
from ..core.exceptions import StorageError


class DatabaseConnection:
    """Key/value store on a single SQLite file, usable as a ``Storage`` backend."""

    __slots__ = ("db_path", "_local", "_lock", "_initialized")

    def __init__(self, db_path="./vaultbox.db"):
        self.db_path = Path(db_path)
        self._local = threading.local()
        self._lock = threading.Lock()
        self._initialized = False

    def initialize(self):
        """Create the parent directory and the tables. Safe to call repeatedly."""
        if self._initialized:
            return

        with self._lock:
            if self._initialized:
                return
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                with self.get_transaction_context() as cursor:
                    for statement in get_init_schema():
                        cursor.execute(statement)
            except (sqlite3.Error, OSError) as e:
                raise StorageError(f"Cannot initialize {self.db_path}: {e}")
            self._initialized = True

    def _get_connection(self):
        conn = getattr(self._local, "connection", None)
        if conn is None:
            conn = sqlite3.connect(str(self.db_path), check_same_thread=False, isolation_level=None)
            conn.row_factory = sqlite3.Row
            self._local.connection = conn
        return conn

    def get_cursor_context(self):
        """Cursor for reads; closed on exit."""
        return TransactionContext(self._get_connection(), begin=False)

    def get_transaction_context(self):
        """Cursor inside BEGIN; committed on success, rolled back on error."""
        return TransactionContext(self._get_connection(), begin=True)

    # ------------------------------------------------------------------
    # Backend protocol used by vaultbox.core.storage.Storage
    # ------------------------------------------------------------------

    def get_value(self, key):
        try:
            with self.get_cursor_context() as cursor:
                row = cursor.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read '{key}': {e}")
        return row["value"] if row else None

    def put_value(self, key, value):
        try:
            with self.get_transaction_context() as cursor:
                cursor.execute(
                    "INSERT OR REPLACE INTO kv_store (key, value, updated_at) "
                    "VALUES (?, ?, CURRENT_TIMESTAMP)",
                    (key, value),
                )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to write '{key}': {e}")

    def delete_value(self, key):
        try:
            with self.get_transaction_context() as cursor:
                cursor.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        except sqlite3.Error as e:
            raise StorageError(f"Failed to delete '{key}': {e}")

    def get_version(self):
        """Highest applied schema version, 0 if the table is missing."""
        try:
            with self.get_cursor_context() as cursor:
                row = cursor.execute("SELECT MAX(version) AS version FROM schema_version").fetchone()
        except sqlite3.Error:
            return 0
        return row["version"] if row and row["version"] else 0

    def close(self):
        """Close this thread's connection, if it has one."""
        conn = getattr(self._local, "connection", None)
        if conn is not None:
            conn.close()
            self._local.connection = None


class TransactionContext:
    """Cursor context manager, optionally wrapped in BEGIN/COMMIT/ROLLBACK."""

    __slots__ = ("connection", "cursor", "begin")

    def __init__(self, connection, begin=True):
        self.connection = connection
        self.cursor = None
        self.begin = begin

    def __enter__(self):
        self.cursor = self.connection.cursor()
        if self.begin:
            self.cursor.execute("BEGIN")
        return self.cursor

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if self.begin:
                if exc_type is None:
                    self.connection.commit()
                else:
                    self.connection.rollback()
        finally:
            self.cursor.close()
