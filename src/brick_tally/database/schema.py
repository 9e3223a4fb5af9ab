"""Database schema definition, initialization, and migrations."""

import sqlite3

SCHEMA_VERSION = 2

# Each statement is a separate string to avoid executescript issues
_SCHEMA_STATEMENTS = [
    """CREATE TABLE IF NOT EXISTS schema_version (
        version INTEGER PRIMARY KEY,
        applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )""",

    # Sessions: one per shared checklist, addressed by an unguessable slug
    """CREATE TABLE IF NOT EXISTS sessions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        slug TEXT NOT NULL UNIQUE,
        set_num TEXT NOT NULL,
        set_name TEXT NOT NULL,
        set_img_url TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )""",

    # Session parts (the ledger rows)
    """CREATE TABLE IF NOT EXISTS session_parts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        session_id INTEGER NOT NULL,
        part_num TEXT NOT NULL,
        part_name TEXT NOT NULL,
        part_img_url TEXT,
        color_id INTEGER NOT NULL,
        color_name TEXT NOT NULL,
        color_rgb TEXT NOT NULL,
        element_id TEXT,
        category TEXT,
        qty_needed INTEGER NOT NULL CHECK (qty_needed >= 0),
        qty_found INTEGER NOT NULL DEFAULT 0
            CHECK (qty_found >= 0 AND qty_found <= qty_needed),
        is_spare INTEGER NOT NULL DEFAULT 0,
        UNIQUE (session_id, part_num, color_id, is_spare),
        FOREIGN KEY (session_id) REFERENCES sessions(id) ON DELETE CASCADE
    )""",

    "CREATE INDEX IF NOT EXISTS idx_session_parts_session "
    "ON session_parts(session_id)",
    "CREATE INDEX IF NOT EXISTS idx_sessions_slug ON sessions(slug)",

    """CREATE TRIGGER IF NOT EXISTS update_sessions_timestamp
    AFTER UPDATE ON sessions
    WHEN NEW.updated_at = OLD.updated_at BEGIN
        UPDATE sessions SET updated_at = CURRENT_TIMESTAMP WHERE id = NEW.id;
    END""",

    "INSERT OR REPLACE INTO schema_version (version) VALUES (1)",
]


# ── Migration from v1 → v2 ──────────────────────────────────────
_MIGRATION_V2_STATEMENTS = [
    # Category names cached from the parts catalog
    """CREATE TABLE IF NOT EXISTS part_categories (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL
    )""",

    # Append-only change log read by the polling realtime channel
    """CREATE TABLE IF NOT EXISTS part_changes (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        session_id INTEGER NOT NULL,
        part_id INTEGER NOT NULL,
        qty_found INTEGER NOT NULL,
        changed_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (session_id) REFERENCES sessions(id) ON DELETE CASCADE,
        FOREIGN KEY (part_id) REFERENCES session_parts(id) ON DELETE CASCADE
    )""",

    "CREATE INDEX IF NOT EXISTS idx_part_changes_session "
    "ON part_changes(session_id, seq)",

    "INSERT OR REPLACE INTO schema_version (version) VALUES (2)",
]


def _get_schema_version(conn) -> int:
    """Get the current schema version, or 0 if no schema exists."""
    try:
        row = conn.execute(
            "SELECT MAX(version) as v FROM schema_version"
        ).fetchone()
        return row["v"] if row and row["v"] else 0
    except sqlite3.OperationalError:
        return 0


def _migrate_v1_to_v2(conn):
    """Upgrade schema from v1 to v2."""
    for stmt in _MIGRATION_V2_STATEMENTS:
        conn.execute(stmt)


def initialize_database(db_connection):
    """Create all tables and indexes, or migrate an older database.

    On a fresh database, creates the v1 schema and then applies every
    migration, so fresh and upgraded databases end up identical.
    """
    with db_connection.get_connection() as conn:
        conn.execute("PRAGMA foreign_keys = ON")

        version = _get_schema_version(conn)

        if version == 0:
            for stmt in _SCHEMA_STATEMENTS:
                conn.execute(stmt)
            version = 1

        if version < 2:
            _migrate_v1_to_v2(conn)
