"""
Recently used WBS codes for one-click re-entry.
"""
import sqlite3
from contextlib import closing
from typing import Optional
import logging

from timetrack.core.config import settings
from timetrack.models.employee import Employee
from timetrack.repositories.budget_item_repository import BudgetItemRepository
from timetrack.repositories.time_entry_repository import TimeEntryRepository
from timetrack.schemas.suggestion import RecentEntry

logger = logging.getLogger(__name__)


class RecentEntryService:
    def __init__(self, conn: sqlite3.Connection) -> None:
        logger.trace("Initializing RecentEntryService")
        self._entries = TimeEntryRepository(conn)
        self._catalog = BudgetItemRepository(conn)

    def recent_entries(
        self, employee: Employee, limit: Optional[int] = None
    ) -> list[RecentEntry]:
        """
        The employee's most recently used distinct WBS codes, newest first.

        Entries are streamed newest-created first and reading stops as soon
        as *limit* distinct codes have been seen.
        """
        limit = limit or settings.RECENT_ENTRIES_LIMIT
        logger.info("Listing recent entries employee id=%s limit=%s", employee.id, limit)

        seen: dict = {}
        with closing(self._entries.iter_recent_by_employee(employee.id)) as entries:
            for entry in entries:
                if entry.wbs_code in seen:
                    continue
                seen[entry.wbs_code] = entry
                if len(seen) >= limit:
                    break

        recents = []
        for code, entry in seen.items():
            # labels only; financial columns are never part of a recent entry
            item = self._catalog.get_for_employee(code)
            recents.append(
                RecentEntry(
                    wbs_code=code,
                    project_number=item.project_number if item else None,
                    project_name=item.project_name if item else None,
                    task_number=item.task_number if item else None,
                    task_description=item.task_description if item else None,
                    subtask_number=item.subtask_number if item else None,
                    subtask_description=item.subtask_description if item else None,
                    last_hours=entry.hours,
                    last_description=entry.description,
                    last_used_at=entry.created_at,
                )
            )
        return recents
