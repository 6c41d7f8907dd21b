"""Sharing-grant repository for database operations."""

import sqlite3
from typing import List

from common.logging_config import get_logger
from common.types import SharePermission, format_timestamp, parse_timestamp
from vault.database import get_db_connection

logger = get_logger(__name__)


class PermissionRepository:
    @staticmethod
    def list_for_object(owner: str, name: str) -> List[SharePermission]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT grantee, can_view, can_download, expires_at, granted_at
                FROM permissions
                WHERE owner = ? AND name = ?
                ORDER BY permission_id
                """,
                (owner, name)
            )
            return [
                SharePermission(
                    grantee=row["grantee"],
                    can_view=bool(row["can_view"]),
                    can_download=bool(row["can_download"]),
                    expires_at=parse_timestamp(row["expires_at"]),
                    granted_at=parse_timestamp(row["granted_at"]),
                )
                for row in cursor.fetchall()
            ]

    @staticmethod
    def replace_grant(owner: str, name: str, permission: SharePermission) -> None:
        """Drop any grant for the same grantee, then store ``permission``."""
        with get_db_connection() as conn:
            try:
                cursor = conn.cursor()
                cursor.execute(
                    "DELETE FROM permissions WHERE owner = ? AND name = ? AND grantee = ?",
                    (owner, name, permission.grantee)
                )
                replaced = cursor.rowcount
                cursor.execute(
                    """
                    INSERT INTO permissions (owner, name, grantee, can_view, can_download, expires_at, granted_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (owner, name, permission.grantee, int(permission.can_view), int(permission.can_download),
                     format_timestamp(permission.expires_at), format_timestamp(permission.granted_at))
                )
                conn.commit()
            except sqlite3.Error:
                conn.rollback()
                raise
        logger.info(
            f"Granted [owner={owner}, name={name}, grantee={permission.grantee}] replaced={replaced}"
        )

    @staticmethod
    def delete_grants(owner: str, name: str, grantee: str) -> int:
        """
        Returns:
            Number of grants removed
        """
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM permissions WHERE owner = ? AND name = ? AND grantee = ?",
                (owner, name, grantee)
            )
            conn.commit()
            return cursor.rowcount
