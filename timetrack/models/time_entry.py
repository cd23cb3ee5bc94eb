"""
Domain model representing a time_entries row from the DB.
"""
from dataclasses import dataclass
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class TimeEntryStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass
class TimeEntry:
    id: int
    employee_id: int
    wbs_code: str
    entry_date: date
    hours: Decimal
    description: Optional[str]
    status: TimeEntryStatus
    submitted_at: Optional[datetime]
    reviewed_at: Optional[datetime]
    reviewed_by: Optional[int]
    review_notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    def __post_init__(self) -> None:
        """Log the creation of the TimeEntry model instance."""
        import logging

        logger = logging.getLogger(__name__)
        logger.trace("Initialized TimeEntry model id=%s", self.id)

    @classmethod
    def from_row(cls, row) -> "TimeEntry":
        """Build a TimeEntry from a sqlite3.Row object."""
        # entry_date is a calendar date; it never passes through a timestamp.
        return cls(
            id=row["id"],
            employee_id=row["employee_id"],
            wbs_code=row["wbs_code"],
            entry_date=date.fromisoformat(row["entry_date"]),
            hours=Decimal(str(row["hours"])),
            description=row["description"],
            status=TimeEntryStatus(row["status"]),
            submitted_at=_parse_timestamp(row["submitted_at"]),
            reviewed_at=_parse_timestamp(row["reviewed_at"]),
            reviewed_by=row["reviewed_by"],
            review_notes=row["review_notes"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


def _parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(raw) if raw else None
