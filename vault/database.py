"""Database schema and connection management for SQLite."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from vault import config


def init_database() -> None:
    """
    Initialize database and create tables if they don't exist.
    """
    db_path = Path(config.DATABASE_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db_connection() as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS objects (
                owner TEXT NOT NULL,
                name TEXT NOT NULL,
                content_type TEXT NOT NULL,
                size INTEGER NOT NULL DEFAULT 0,
                total_chunks INTEGER NOT NULL DEFAULT 0,
                is_distinguished INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                modified_at TEXT NOT NULL,
                PRIMARY KEY(owner, name)
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS chunks (
                owner TEXT NOT NULL,
                name TEXT NOT NULL,
                chunk_index INTEGER NOT NULL,
                data BLOB NOT NULL,
                PRIMARY KEY(owner, name, chunk_index),
                FOREIGN KEY(owner, name) REFERENCES objects(owner, name) ON DELETE CASCADE
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS permissions (
                permission_id INTEGER PRIMARY KEY AUTOINCREMENT,
                owner TEXT NOT NULL,
                name TEXT NOT NULL,
                grantee TEXT NOT NULL,
                can_view INTEGER NOT NULL,
                can_download INTEGER NOT NULL,
                expires_at TEXT,
                granted_at TEXT NOT NULL,
                FOREIGN KEY(owner, name) REFERENCES objects(owner, name) ON DELETE CASCADE
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_permissions_grantee ON permissions(grantee)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_permissions_object ON permissions(owner, name)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_objects_distinguished ON objects(owner, is_distinguished)
        """)

        conn.commit()


@contextmanager
def get_db_connection() -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database connections with foreign keys enabled.
    """
    conn = sqlite3.connect(config.DATABASE_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()
