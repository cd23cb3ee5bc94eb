"""
Repository layer for in-app notifications.
"""
import sqlite3
from datetime import datetime, timezone
from typing import Optional
import logging

from timetrack.models.notification import Notification, NotificationType
from timetrack.core.logging_config import log_db_timing

logger = logging.getLogger(__name__)


class NotificationRepository:
    """Data access layer for notification records."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        logger.trace("Initializing NotificationRepository")
        self._conn = conn

    @log_db_timing
    def get_by_id(self, notification_id: int) -> Optional[Notification]:
        row = self._conn.execute(
            "SELECT * FROM notifications WHERE id = ?", (notification_id,)
        ).fetchone()
        return Notification.from_row(row) if row else None

    @log_db_timing
    def list_for_user(self, user_id: str, limit: int = 10) -> list[Notification]:
        """Return the newest notifications of one auth user."""
        rows = self._conn.execute(
            """
            SELECT * FROM notifications
             WHERE user_id = ?
             ORDER BY created_at DESC, id DESC
             LIMIT ?
            """,
            (user_id, limit),
        ).fetchall()
        return [Notification.from_row(r) for r in rows]

    @log_db_timing
    def count_unread(self, user_id: str) -> int:
        row = self._conn.execute(
            "SELECT COUNT(*) AS unread FROM notifications WHERE user_id = ? AND read = 0",
            (user_id,),
        ).fetchone()
        return row["unread"]

    @log_db_timing
    def create(
        self,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType,
        related_id: Optional[str] = None,
        related_type: Optional[str] = None,
    ) -> Notification:
        logger.info("Creating notification user_id=%s title=%s", user_id, title)
        now = datetime.now(tz=timezone.utc).isoformat()
        cursor = self._conn.execute(
            """
            INSERT INTO notifications (
                user_id, title, message, type, read, related_id, related_type,
                created_at, updated_at
            )
            VALUES (?, ?, ?, ?, 0, ?, ?, ?, ?)
            """,
            (user_id, title, message, type.value, related_id, related_type, now, now),
        )
        return self.get_by_id(cursor.lastrowid)  # type: ignore[return-value]

    @log_db_timing
    def mark_read(self, notification_id: int, user_id: str) -> bool:
        """Mark one of the user's notifications as read."""
        cursor = self._conn.execute(
            """
            UPDATE notifications SET read = 1, updated_at = ?
             WHERE id = ? AND user_id = ?
            """,
            (datetime.now(tz=timezone.utc).isoformat(), notification_id, user_id),
        )
        return cursor.rowcount > 0

    @log_db_timing
    def mark_all_read(self, user_id: str) -> int:
        cursor = self._conn.execute(
            """
            UPDATE notifications SET read = 1, updated_at = ?
             WHERE user_id = ? AND read = 0
            """,
            (datetime.now(tz=timezone.utc).isoformat(), user_id),
        )
        return cursor.rowcount
