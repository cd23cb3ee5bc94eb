"""
Repository layer for TimeEntry persistence.
All SQL for the `time_entries` table lives here.

Every status-gated mutation is a single conditional statement that re-checks
the current status (and owner) inside the write, so an admin review landing
between an employee's read and write makes the write affect zero rows
instead of overwriting the reviewed entry.
"""
import sqlite3
from datetime import datetime, timezone, date
from decimal import Decimal
from typing import Iterable, Iterator, Optional
import logging

from timetrack.models.time_entry import TimeEntry, TimeEntryStatus
from timetrack.core.logging_config import log_db_timing

logger = logging.getLogger(__name__)


def _utcnow() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


def _placeholders(values: Iterable) -> tuple[str, list]:
    items = list(values)
    return ", ".join("?" for _ in items), items


class TimeEntryRepository:
    """Data access layer for time entry records."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        logger.trace("Initializing TimeEntryRepository")
        self._conn = conn

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    @log_db_timing
    def get_by_id(self, entry_id: int) -> Optional[TimeEntry]:
        """Return a time entry by id or None if missing."""
        row = self._conn.execute(
            "SELECT * FROM time_entries WHERE id = ?",
            (entry_id,),
        ).fetchone()
        return TimeEntry.from_row(row) if row else None

    @log_db_timing
    def list_by_employee(
        self,
        employee_id: int,
        status: Optional[TimeEntryStatus] = None,
    ) -> list[TimeEntry]:
        """Return an employee's entries, newest entry_date first."""
        logger.trace("Listing time entries employee_id=%s status=%s", employee_id, status)
        if status:
            rows = self._conn.execute(
                """
                SELECT * FROM time_entries
                WHERE employee_id = ? AND status = ?
                ORDER BY entry_date DESC, created_at DESC, id DESC
                """,
                (employee_id, status.value),
            ).fetchall()
        else:
            rows = self._conn.execute(
                """
                SELECT * FROM time_entries
                WHERE employee_id = ?
                ORDER BY entry_date DESC, created_at DESC, id DESC
                """,
                (employee_id,),
            ).fetchall()
        return [TimeEntry.from_row(row) for row in rows]

    @log_db_timing
    def list_by_employee_in_range(
        self, employee_id: int, start_date: date, end_date: date
    ) -> list[TimeEntry]:
        """Return an employee's entries with start_date <= entry_date <= end_date."""
        rows = self._conn.execute(
            """
            SELECT * FROM time_entries
            WHERE employee_id = ? AND entry_date >= ? AND entry_date <= ?
            ORDER BY entry_date, created_at, id
            """,
            (employee_id, start_date.isoformat(), end_date.isoformat()),
        ).fetchall()
        return [TimeEntry.from_row(row) for row in rows]

    @log_db_timing
    def list_pending(self) -> list[TimeEntry]:
        """List submitted entries awaiting review, latest submission first."""
        rows = self._conn.execute(
            """
            SELECT * FROM time_entries
            WHERE status = ?
            ORDER BY submitted_at DESC, id DESC
            """,
            (TimeEntryStatus.SUBMITTED.value,),
        ).fetchall()
        return [TimeEntry.from_row(row) for row in rows]

    @log_db_timing
    def list_drafts(self) -> list[TimeEntry]:
        """List draft entries across all employees, most recently edited first."""
        rows = self._conn.execute(
            """
            SELECT * FROM time_entries
            WHERE status = ?
            ORDER BY updated_at DESC, id DESC
            """,
            (TimeEntryStatus.DRAFT.value,),
        ).fetchall()
        return [TimeEntry.from_row(row) for row in rows]

    def iter_recent_by_employee(self, employee_id: int) -> Iterator[TimeEntry]:
        """
        Lazily yield an employee's entries, most recently created first.
        Rows are fetched from the cursor only as the caller consumes them.
        """
        logger.trace("Streaming recent time entries employee_id=%s", employee_id)
        cursor = self._conn.execute(
            """
            SELECT * FROM time_entries
            WHERE employee_id = ?
            ORDER BY created_at DESC, id DESC
            """,
            (employee_id,),
        )
        try:
            for row in cursor:
                yield TimeEntry.from_row(row)
        finally:
            cursor.close()

    @log_db_timing
    def sum_approved_hours_by_rate(self) -> list[sqlite3.Row]:
        """
        Return approved hours grouped by (wbs_code, owner billing rate).
        Columns: wbs_code, billing_rate (nullable), hours.
        """
        return self._conn.execute(
            """
            SELECT te.wbs_code              AS wbs_code,
                   e.default_billing_rate   AS billing_rate,
                   SUM(te.hours)            AS hours
              FROM time_entries te
              JOIN employees e ON e.id = te.employee_id
             WHERE te.status = ?
             GROUP BY te.wbs_code, e.id
            """,
            (TimeEntryStatus.APPROVED.value,),
        ).fetchall()

    @log_db_timing
    def list_by_submission(self, employee_id: int, submitted_at: str) -> list[TimeEntry]:
        """Return the entries moved by one bulk submission, identified by its stamp."""
        rows = self._conn.execute(
            """
            SELECT * FROM time_entries
             WHERE employee_id = ? AND submitted_at = ?
             ORDER BY entry_date, id
            """,
            (employee_id, submitted_at),
        ).fetchall()
        return [TimeEntry.from_row(row) for row in rows]

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @log_db_timing
    def create(
        self,
        employee_id: int,
        wbs_code: str,
        entry_date: date,
        hours: Decimal,
        description: Optional[str],
    ) -> TimeEntry:
        """Insert a draft time entry row and return it."""
        logger.info("Creating time entry employee_id=%s wbs_code=%s", employee_id, wbs_code)
        now = _utcnow()
        cursor = self._conn.execute(
            """
            INSERT INTO time_entries (
                employee_id, wbs_code, entry_date, hours, description,
                status, created_at, updated_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                employee_id,
                wbs_code,
                entry_date.isoformat(),
                float(hours),
                description,
                TimeEntryStatus.DRAFT.value,
                now,
                now,
            ),
        )
        return self.get_by_id(cursor.lastrowid)  # type: ignore[return-value]

    @log_db_timing
    def update_if_status(
        self,
        entry_id: int,
        employee_id: int,
        allowed_statuses: tuple[TimeEntryStatus, ...],
        target_status: TimeEntryStatus,
        changes: dict,
        clear_review_from: Optional[TimeEntryStatus] = None,
    ) -> bool:
        """
        Apply an owner edit only while the entry is in *allowed_statuses*.

        *changes* maps entry_date / hours / description to their new values;
        a description of None clears it.

        Rows whose pre-update status equals *clear_review_from* also lose
        their review metadata in the same statement. Returns True when the
        row was updated.
        """
        fields: dict = {}
        if "entry_date" in changes:
            fields["entry_date"] = changes["entry_date"].isoformat()
        if "hours" in changes:
            fields["hours"] = float(changes["hours"])
        if "description" in changes:
            fields["description"] = changes["description"]
        fields["status"] = target_status.value
        fields["updated_at"] = _utcnow()

        set_parts = [f"{col} = ?" for col in fields]
        values: list = list(fields.values())
        if clear_review_from is not None:
            # SET expressions see the pre-update row, so this keys off the old status
            for col in ("reviewed_at", "reviewed_by", "review_notes"):
                set_parts.append(f"{col} = CASE WHEN status = ? THEN NULL ELSE {col} END")
                values.append(clear_review_from.value)

        marks, statuses = _placeholders(s.value for s in allowed_statuses)
        logger.info("Conditionally updating time entry id=%s", entry_id)
        cursor = self._conn.execute(
            f"""
            UPDATE time_entries
               SET {", ".join(set_parts)}
             WHERE id = ? AND employee_id = ? AND status IN ({marks})
            """,
            values + [entry_id, employee_id] + statuses,
        )
        return cursor.rowcount > 0

    @log_db_timing
    def delete_if_status(
        self,
        entry_id: int,
        employee_id: int,
        allowed_statuses: tuple[TimeEntryStatus, ...],
    ) -> bool:
        """Delete an owner's entry only while it is in *allowed_statuses*."""
        logger.info("Conditionally deleting time entry id=%s", entry_id)
        marks, statuses = _placeholders(s.value for s in allowed_statuses)
        cursor = self._conn.execute(
            f"""
            DELETE FROM time_entries
             WHERE id = ? AND employee_id = ? AND status IN ({marks})
            """,
            [entry_id, employee_id] + statuses,
        )
        logger.info("Time entry delete affected %s rows", cursor.rowcount)
        return cursor.rowcount > 0

    @log_db_timing
    def submit_range(
        self,
        employee_id: int,
        start_date: date,
        end_date: date,
        from_status: TimeEntryStatus,
        to_status: TimeEntryStatus,
        submitted_at: str,
    ) -> int:
        """
        Move every matching entry of one employee in a date range in a single
        statement and return the number of rows moved.
        """
        cursor = self._conn.execute(
            """
            UPDATE time_entries
               SET status = ?, submitted_at = ?, updated_at = ?
             WHERE employee_id = ? AND status = ?
               AND entry_date >= ? AND entry_date <= ?
            """,
            (
                to_status.value,
                submitted_at,
                submitted_at,
                employee_id,
                from_status.value,
                start_date.isoformat(),
                end_date.isoformat(),
            ),
        )
        logger.info(
            "Submitted %s entries employee_id=%s range=%s..%s",
            cursor.rowcount,
            employee_id,
            start_date,
            end_date,
        )
        return cursor.rowcount

    @log_db_timing
    def review_if_status(
        self,
        entry_id: int,
        from_status: TimeEntryStatus,
        to_status: TimeEntryStatus,
        reviewed_by: int,
        review_notes: Optional[str] = None,
    ) -> bool:
        """Stamp a review decision only while the entry is in *from_status*."""
        logger.info("Reviewing time entry record id=%s", entry_id)
        now = _utcnow()
        cursor = self._conn.execute(
            """
            UPDATE time_entries
               SET status = ?, reviewed_by = ?, reviewed_at = ?,
                   review_notes = ?, updated_at = ?
             WHERE id = ? AND status = ?
            """,
            (
                to_status.value,
                reviewed_by,
                now,
                review_notes,
                now,
                entry_id,
                from_status.value,
            ),
        )
        return cursor.rowcount > 0
