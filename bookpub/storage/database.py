"""SQLite database initialization and connection management."""

import sqlite3
from pathlib import Path

ROOT_NODE_ID = "root"


def get_connection(db_path: str | Path, check_same_thread: bool = True) -> sqlite3.Connection:
    """Create a connection to the SQLite database.

    Args:
        db_path: Path to the SQLite database file.
        check_same_thread: Passed through to sqlite3; disable when the
            connection is shared between threads behind a lock.

    Returns:
        A sqlite3 Connection with row_factory set to Row.
    """
    conn = sqlite3.connect(str(db_path), check_same_thread=check_same_thread)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def initialize_database(db_path: str | Path) -> None:
    """Create the database schema and the root node if they don't exist.

    Args:
        db_path: Path to the SQLite database file.
    """
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = get_connection(db_path)
    try:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS nodes (
                id TEXT PRIMARY KEY,
                parent_id TEXT REFERENCES nodes(id) ON DELETE CASCADE,
                name TEXT NOT NULL,
                node_type TEXT NOT NULL,
                properties TEXT NOT NULL DEFAULT '{}',
                content BLOB,
                mimetype TEXT,
                created_at TEXT NOT NULL,
                modified_at TEXT NOT NULL,
                UNIQUE (parent_id, name)
            );

            CREATE INDEX IF NOT EXISTS idx_nodes_parent ON nodes (parent_id);
            CREATE INDEX IF NOT EXISTS idx_nodes_modified ON nodes (modified_at);

            INSERT OR IGNORE INTO nodes (id, parent_id, name, node_type, created_at, modified_at)
            VALUES ('root', NULL, '', 'folder', datetime('now'), datetime('now'));
            """
        )
        conn.commit()
    finally:
        conn.close()
