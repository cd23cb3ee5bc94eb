"""
Domain model representing a security_audit_log row.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
import json
from typing import Any, Optional


class AuditAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    SUBMIT = "submit"
    STATUS_CHANGE = "status_change"
    ROLE_CHANGE = "role_change"


@dataclass
class AuditLogEntry:
    id: int
    user_id: Optional[str]
    action: AuditAction
    table_name: str
    record_id: Optional[str]
    old_values: Optional[dict[str, Any]]
    new_values: Optional[dict[str, Any]]
    created_at: datetime

    @classmethod
    def from_row(cls, row) -> "AuditLogEntry":
        """Build an AuditLogEntry from a sqlite3.Row object."""
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            action=AuditAction(row["action"]),
            table_name=row["table_name"],
            record_id=row["record_id"],
            old_values=json.loads(row["old_values"]) if row["old_values"] else None,
            new_values=json.loads(row["new_values"]) if row["new_values"] else None,
            created_at=datetime.fromisoformat(row["created_at"]),
        )
