"""SQLite schema for the VaultBox record file."""

SCHEMA_VERSION = 1

CREATE_TABLES = [
    # One row per record name ("vault", "sessionExpiry", "config").
    # Every write replaces the whole value; there are no partial updates.
    """
    CREATE TABLE IF NOT EXISTS kv_store (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS schema_version (
        version INTEGER PRIMARY KEY,
        applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
]


def get_init_schema():
    """Statements that create the tables and record the schema version."""
    return CREATE_TABLES + [
        f"INSERT OR IGNORE INTO schema_version (version) VALUES ({SCHEMA_VERSION})"
    ]


def get_drop_schema():
    """Statements that remove every table; used by tests to simulate a damaged file."""
    return [
        "DROP TABLE IF EXISTS kv_store",
        "DROP TABLE IF EXISTS schema_version",
    ]
