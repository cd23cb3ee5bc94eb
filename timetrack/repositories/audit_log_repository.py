"""
Repository layer for the security audit log.
Rows are append-only: there is no update or delete.
"""
import json
import sqlite3
from datetime import datetime, timezone
from typing import Any, Optional
import logging

from timetrack.models.audit_log import AuditAction, AuditLogEntry
from timetrack.core.logging_config import log_db_timing

logger = logging.getLogger(__name__)


def _to_json(values: Optional[dict[str, Any]]) -> Optional[str]:
    # dates, datetimes and Decimals are stored as their str() form
    return json.dumps(values, default=str, sort_keys=True) if values is not None else None


class AuditLogRepository:
    """Data access layer for security_audit_log records."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        logger.trace("Initializing AuditLogRepository")
        self._conn = conn

    @log_db_timing
    def get_by_id(self, audit_id: int) -> Optional[AuditLogEntry]:
        row = self._conn.execute(
            "SELECT * FROM security_audit_log WHERE id = ?", (audit_id,)
        ).fetchone()
        return AuditLogEntry.from_row(row) if row else None

    @log_db_timing
    def list_recent(
        self,
        limit: int = 50,
        table_name: Optional[str] = None,
        record_id: Optional[str] = None,
    ) -> list[AuditLogEntry]:
        """Return audit rows newest first, optionally narrowed to one table or record."""
        clauses: list[str] = []
        params: list = []
        if table_name is not None:
            clauses.append("table_name = ?")
            params.append(table_name)
        if record_id is not None:
            clauses.append("record_id = ?")
            params.append(record_id)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self._conn.execute(
            f"""
            SELECT * FROM security_audit_log
            {where}
            ORDER BY created_at DESC, id DESC
            LIMIT ?
            """,
            params + [limit],
        ).fetchall()
        return [AuditLogEntry.from_row(r) for r in rows]

    @log_db_timing
    def create(
        self,
        user_id: Optional[str],
        action: AuditAction,
        table_name: str,
        record_id: Optional[str],
        old_values: Optional[dict[str, Any]] = None,
        new_values: Optional[dict[str, Any]] = None,
    ) -> AuditLogEntry:
        logger.info(
            "Auditing %s on %s record_id=%s by user_id=%s",
            action.value,
            table_name,
            record_id,
            user_id,
        )
        cursor = self._conn.execute(
            """
            INSERT INTO security_audit_log (
                user_id, action, table_name, record_id, old_values, new_values, created_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                user_id,
                action.value,
                table_name,
                record_id,
                _to_json(old_values),
                _to_json(new_values),
                datetime.now(tz=timezone.utc).isoformat(),
            ),
        )
        return self.get_by_id(cursor.lastrowid)  # type: ignore[return-value]
