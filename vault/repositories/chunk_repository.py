"""Chunk repository for database operations."""

import sqlite3
from typing import Optional

from common.logging_config import get_logger
from vault.database import get_db_connection

logger = get_logger(__name__)


class ChunkRepository:
    @staticmethod
    def insert(owner: str, name: str, chunk_index: int, data: bytes, conn: sqlite3.Connection) -> None:
        logger.debug(f"Storing chunk [owner={owner}, name={name}, index={chunk_index}, size={len(data)}]")
        cursor = conn.cursor()
        cursor.execute(
            "INSERT INTO chunks (owner, name, chunk_index, data) VALUES (?, ?, ?, ?)",
            (owner, name, chunk_index, data)
        )

    @staticmethod
    def get(owner: str, name: str, chunk_index: int) -> Optional[bytes]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT data FROM chunks WHERE owner = ? AND name = ? AND chunk_index = ?",
                (owner, name, chunk_index)
            )
            row = cursor.fetchone()
            return bytes(row["data"]) if row else None
