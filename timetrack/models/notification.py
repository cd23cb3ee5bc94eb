"""
Domain model representing an in-app notification row.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Notification:
    id: int
    user_id: str
    title: str
    message: str
    type: NotificationType
    read: bool
    related_id: Optional[str]
    related_type: Optional[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_row(cls, row) -> "Notification":
        """Build a Notification from a sqlite3.Row object."""
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            message=row["message"],
            type=NotificationType(row["type"]),
            read=bool(row["read"]),
            related_id=row["related_id"],
            related_type=row["related_type"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
