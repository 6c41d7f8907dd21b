"""Object repository for database operations."""

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from common.logging_config import get_logger
from common.types import format_timestamp, parse_timestamp
from vault.database import get_db_connection

logger = get_logger(__name__)

_COLUMNS = "owner, name, content_type, size, total_chunks, is_distinguished, created_at, modified_at"


@dataclass
class ObjectRecord:
    owner: str
    name: str
    content_type: str
    size: int
    total_chunks: int
    is_distinguished: bool
    created_at: datetime
    modified_at: datetime


def _to_record(row: sqlite3.Row) -> ObjectRecord:
    return ObjectRecord(
        owner=row["owner"],
        name=row["name"],
        content_type=row["content_type"],
        size=row["size"],
        total_chunks=row["total_chunks"],
        is_distinguished=bool(row["is_distinguished"]),
        created_at=parse_timestamp(row["created_at"]),
        modified_at=parse_timestamp(row["modified_at"]),
    )


class ObjectRepository:
    @staticmethod
    def get(owner: str, name: str, conn: Optional[sqlite3.Connection] = None) -> Optional[ObjectRecord]:
        if conn is None:
            with get_db_connection() as conn:
                return ObjectRepository.get(owner, name, conn=conn)

        cursor = conn.cursor()
        cursor.execute(
            f"SELECT {_COLUMNS} FROM objects WHERE owner = ? AND name = ?",
            (owner, name)
        )
        row = cursor.fetchone()
        return _to_record(row) if row else None

    @staticmethod
    def create(
        owner: str,
        name: str,
        content_type: str,
        is_distinguished: bool,
        created_at: datetime,
        conn: sqlite3.Connection,
    ) -> None:
        logger.debug(f"Creating object [owner={owner}, name={name}]")
        cursor = conn.cursor()
        cursor.execute(
            """
            INSERT INTO objects (owner, name, content_type, size, total_chunks, is_distinguished, created_at, modified_at)
            VALUES (?, ?, ?, 0, 0, ?, ?, ?)
            """,
            (owner, name, content_type, int(is_distinguished),
             format_timestamp(created_at), format_timestamp(created_at))
        )

    @staticmethod
    def record_chunk(owner: str, name: str, chunk_size: int, modified_at: datetime, conn: sqlite3.Connection) -> int:
        """
        Account for one appended chunk.

        Returns:
            New chunk count of the object
        """
        cursor = conn.cursor()
        cursor.execute(
            """
            UPDATE objects
            SET total_chunks = total_chunks + 1, size = size + ?, modified_at = ?
            WHERE owner = ? AND name = ?
            """,
            (chunk_size, format_timestamp(modified_at), owner, name)
        )
        cursor.execute(
            "SELECT total_chunks FROM objects WHERE owner = ? AND name = ?",
            (owner, name)
        )
        return cursor.fetchone()["total_chunks"]

    @staticmethod
    def list_by_owner(owner: str) -> List[ObjectRecord]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_COLUMNS} FROM objects WHERE owner = ? ORDER BY created_at, name",
                (owner,)
            )
            return [_to_record(row) for row in cursor.fetchall()]

    @staticmethod
    def latest_distinguished(owner: str) -> Optional[ObjectRecord]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT {_COLUMNS} FROM objects
                WHERE owner = ? AND is_distinguished = 1
                ORDER BY created_at DESC, rowid DESC
                LIMIT 1
                """,
                (owner,)
            )
            row = cursor.fetchone()
            return _to_record(row) if row else None

    @staticmethod
    def list_shared_with(grantee: str) -> List[ObjectRecord]:
        """Objects carrying at least one grant (active or not) for ``grantee``."""
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT o.owner, o.name, o.content_type, o.size, o.total_chunks,
                       o.is_distinguished, o.created_at, o.modified_at
                FROM objects o
                WHERE EXISTS (
                    SELECT 1 FROM permissions p
                    WHERE p.owner = o.owner AND p.name = o.name AND p.grantee = ?
                )
                ORDER BY o.owner, o.created_at
                """,
                (grantee,)
            )
            return [_to_record(row) for row in cursor.fetchall()]

    @staticmethod
    def delete(owner: str, name: str) -> bool:
        """
        Delete an object with its chunks and grants.

        Returns:
            True if the object existed
        """
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM objects WHERE owner = ? AND name = ?", (owner, name))
            conn.commit()
            deleted = cursor.rowcount > 0
        logger.info(f"Delete object [owner={owner}, name={name}] deleted={deleted}")
        return deleted
