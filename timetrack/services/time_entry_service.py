"""
Time entry management service.
Employees create, edit, delete and submit their own entries.
Admins review (approve/reject) submitted entries.

Every mutation is checked against the entry workflow table first and then
written with a status-gated statement, so a concurrent review between the
read and the write turns into an error instead of a lost update. Each
mutation also writes a security audit row in the same transaction.
"""
import sqlite3
from dataclasses import asdict
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional
import logging

from timetrack.core.dates import week_days, week_end
from timetrack.core.exceptions import (
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from timetrack.models.audit_log import AuditAction
from timetrack.models.employee import Employee
from timetrack.models.time_entry import TimeEntry, TimeEntryStatus
from timetrack.repositories.budget_item_repository import BudgetItemRepository
from timetrack.repositories.employee_repository import EmployeeRepository
from timetrack.repositories.time_entry_repository import TimeEntryRepository
from timetrack.schemas.time_entry import (
    ReviewQueueEntry,
    ReviewStats,
    TimeEntryBatchCreate,
    TimeEntryCreate,
    TimeEntryReview,
    TimeEntryUpdate,
    WeeklyCell,
    WeeklyRow,
    WeeklySummary,
)
from timetrack.services.entry_workflow import (
    TRANSITIONS,
    EntryAction,
    check_transition,
    clears_review_metadata,
    review_action,
    source_statuses,
)
from timetrack.services.audit_service import TIME_ENTRIES, AuditService
from timetrack.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")
_CENTS = Decimal("0.01")


class TimeEntryService:
    def __init__(
        self,
        conn: sqlite3.Connection,
        notifier: Optional[NotificationService] = None,
    ) -> None:
        logger.trace("Initializing TimeEntryService")
        self._conn = conn
        self._repo = TimeEntryRepository(conn)
        self._catalog = BudgetItemRepository(conn)
        self._employees = EmployeeRepository(conn)
        self._notifier = notifier or NotificationService(conn)
        self._audit = AuditService(conn)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_entry(self, entry_id: int) -> TimeEntry:
        logger.info("Fetching time entry id=%s", entry_id)
        entry = self._repo.get_by_id(entry_id)
        if not entry:
            logger.warning("Time entry id=%s not found", entry_id)
            raise NotFoundError(f"Time entry with id={entry_id} not found")
        return entry

    def get_entry_for(self, entry_id: int, viewer: Employee) -> TimeEntry:
        """Fetch an entry the viewer owns, or any entry for admins."""
        entry = self.get_entry(entry_id)
        if entry.employee_id != viewer.id and not viewer.is_admin:
            logger.warning("Employee id=%s cannot view entry id=%s", viewer.id, entry_id)
            raise PermissionDeniedError("You can only view your own time entries")
        return entry

    def list_my_entries(
        self,
        employee: Employee,
        status_filter: Optional[TimeEntryStatus] = None,
    ) -> list[TimeEntry]:
        """List the employee's entries, newest entry date first."""
        logger.info("Listing time entries for employee id=%s", employee.id)
        return self._repo.list_by_employee(employee.id, status=status_filter)

    def list_pending(self) -> list[ReviewQueueEntry]:
        """Submitted entries awaiting review, latest submission first."""
        logger.info("Listing pending time entries")
        return self._enrich(self._repo.list_pending())

    def list_drafts(self) -> list[ReviewQueueEntry]:
        logger.info("Listing draft time entries")
        return self._enrich(self._repo.list_drafts())

    def review_stats(self) -> ReviewStats:
        """Counters for the review dashboard."""
        logger.info("Computing review stats")
        pending = self._repo.list_pending()
        drafts = self._repo.list_drafts()
        pending_hours = sum((e.hours for e in pending), _ZERO)
        draft_hours = sum((e.hours for e in drafts), _ZERO)
        avg = (pending_hours / len(pending)).quantize(_CENTS) if pending else _ZERO
        return ReviewStats(
            total_pending=len(pending),
            pending_hours=pending_hours,
            total_employees=len({e.employee_id for e in pending}),
            avg_hours_per_entry=avg,
            total_drafts=len(drafts),
            draft_hours=draft_hours,
        )

    def weekly_summary(self, employee: Employee, week_start: date) -> WeeklySummary:
        """
        Seven-day grid starting at *week_start*: one row per WBS code with
        per-day hours and descriptions, plus daily and weekly totals.
        """
        last_day = week_end(week_start)
        logger.info(
            "Building weekly summary employee id=%s week=%s..%s",
            employee.id,
            week_start,
            last_day,
        )
        days = week_days(week_start)
        entries = self._repo.list_by_employee_in_range(employee.id, week_start, last_day)
        labels = {item.wbs_code: item for item in self._catalog.list_for_employee()}

        rows: dict[str, WeeklyRow] = {}
        daily_totals = {day: _ZERO for day in days}
        for entry in entries:
            row = rows.get(entry.wbs_code)
            if row is None:
                item = labels.get(entry.wbs_code)
                row = WeeklyRow(
                    wbs_code=entry.wbs_code,
                    project_name=item.project_name if item else entry.wbs_code,
                    days={day: WeeklyCell() for day in days},
                    total_hours=_ZERO,
                )
                rows[entry.wbs_code] = row
            cell = row.days[entry.entry_date]
            cell.hours += entry.hours
            if entry.description:
                cell.descriptions.append(entry.description)
            row.total_hours += entry.hours
            daily_totals[entry.entry_date] += entry.hours

        return WeeklySummary(
            week_start=week_start,
            week_end=last_day,
            days=days,
            rows=sorted(rows.values(), key=lambda r: r.wbs_code),
            daily_totals=daily_totals,
            total_hours=sum(daily_totals.values(), _ZERO),
        )

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_entry(self, employee: Employee, data: TimeEntryCreate) -> TimeEntry:
        """Create a draft entry for the current employee."""
        logger.info("Creating time entry for employee id=%s", employee.id)
        self._validate_new_entry(employee, data)
        entry = self._repo.create(
            employee_id=employee.id,
            wbs_code=data.wbs_code,
            entry_date=data.entry_date,
            hours=data.hours,
            description=data.description,
        )
        self._audit.record_entry_change(employee, AuditAction.CREATE, None, entry)
        logger.info("Time entry created id=%s", entry.id)
        return entry

    def create_entries(
        self, employee: Employee, batch: TimeEntryBatchCreate
    ) -> list[TimeEntry]:
        """
        Create several drafts at once. Every item is validated before the
        first insert, so one bad item leaves nothing behind.
        """
        logger.info(
            "Creating %s time entries for employee id=%s", len(batch.entries), employee.id
        )
        for data in batch.entries:
            self._validate_new_entry(employee, data)
        created = []
        for data in batch.entries:
            entry = self._repo.create(
                employee_id=employee.id,
                wbs_code=data.wbs_code,
                entry_date=data.entry_date,
                hours=data.hours,
                description=data.description,
            )
            self._audit.record_entry_change(employee, AuditAction.CREATE, None, entry)
            created.append(entry)
        return created

    # ------------------------------------------------------------------
    # Update / delete
    # ------------------------------------------------------------------

    def update_entry(
        self, entry_id: int, employee: Employee, data: TimeEntryUpdate
    ) -> TimeEntry:
        """
        Edit a draft or rejected entry. Editing a rejected entry returns it
        to draft and clears its review metadata; the audit row keeps the
        cleared review. Only fields present in the request change, and an
        explicit null description clears it.
        """
        logger.info("Updating time entry id=%s", entry_id)
        entry = self.get_entry(entry_id)
        target = check_transition(EntryAction.UPDATE, entry.status, employee, entry.employee_id)

        changes = data.model_dump(exclude_unset=True)
        for required in ("entry_date", "hours"):
            if required in changes and changes[required] is None:
                logger.warning("Null %s on update of entry id=%s", required, entry_id)
                raise ValidationError(f"{required} cannot be empty")
        if "hours" in changes and changes["hours"] <= 0:
            logger.warning("Non-positive hours on update of entry id=%s", entry_id)
            raise ValidationError("Hours must be greater than 0")

        sources = source_statuses(EntryAction.UPDATE)
        clear_from = next((s for s in sources if clears_review_metadata(s)), None)
        updated = self._repo.update_if_status(
            entry_id=entry.id,
            employee_id=employee.id,
            allowed_statuses=sources,
            target_status=target,  # type: ignore[arg-type]
            changes=changes,
            clear_review_from=clear_from,
        )
        if not updated:
            self._raise_lost_race(entry_id, EntryAction.UPDATE, employee)
        updated_entry = self.get_entry(entry.id)
        self._audit.record_entry_change(employee, AuditAction.UPDATE, entry, updated_entry)
        logger.info("Time entry updated id=%s", entry.id)
        return updated_entry

    def delete_entry(self, entry_id: int, employee: Employee) -> None:
        logger.info("Deleting time entry id=%s", entry_id)
        entry = self.get_entry(entry_id)
        check_transition(EntryAction.DELETE, entry.status, employee, entry.employee_id)

        if not self._repo.delete_if_status(
            entry.id, employee.id, source_statuses(EntryAction.DELETE)
        ):
            self._raise_lost_race(entry_id, EntryAction.DELETE, employee)
        self._audit.record_entry_change(employee, AuditAction.DELETE, entry, None)
        logger.info("Time entry deleted id=%s", entry.id)

    # ------------------------------------------------------------------
    # Submit
    # ------------------------------------------------------------------

    def submit_timesheet(self, employee: Employee, day: date) -> int:
        """Submit every draft of *day*. Returns the number submitted; 0 is fine."""
        logger.info("Submitting timesheet employee id=%s day=%s", employee.id, day)
        return self._submit(employee, day, day)

    def submit_week(self, employee: Employee, week_start: date, last_day: date) -> int:
        """Submit every draft with week_start <= entry_date <= last_day."""
        logger.info(
            "Submitting week employee id=%s range=%s..%s", employee.id, week_start, last_day
        )
        if last_day < week_start:
            logger.warning("Submit range end %s before start %s", last_day, week_start)
            raise ValidationError("Week end must not be before week start")
        return self._submit(employee, week_start, last_day)

    # ------------------------------------------------------------------
    # Review (admin only)
    # ------------------------------------------------------------------

    def review_entry(
        self, entry_id: int, reviewer: Employee, data: TimeEntryReview
    ) -> TimeEntry:
        """
        Approve or reject a submitted entry.
        Review notes are kept only on rejection. The owner is notified
        afterwards; a notification failure does not undo the review, and the
        owner's email stays queued on the notifier until ``send_pending``.
        """
        logger.info("Reviewing time entry id=%s", entry_id)
        action = review_action(data.status)
        entry = self.get_entry(entry_id)
        target = check_transition(action, entry.status, reviewer, entry.employee_id)

        notes = data.review_notes if target == TimeEntryStatus.REJECTED else None
        (source,) = source_statuses(action)
        if not self._repo.review_if_status(
            entry_id=entry.id,
            from_status=source,
            to_status=target,  # type: ignore[arg-type]
            reviewed_by=reviewer.id,
            review_notes=notes,
        ):
            self._raise_lost_race(entry_id, action, reviewer)

        reviewed = self.get_entry(entry.id)
        self._audit.record_entry_change(reviewer, AuditAction.STATUS_CHANGE, entry, reviewed)
        logger.info("Time entry reviewed id=%s status=%s", entry.id, reviewed.status.value)

        owner = self._employees.get_by_id(reviewed.employee_id)
        if owner:
            self._notifier.notify_entry_reviewed(reviewed, owner)
        return reviewed

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _validate_new_entry(self, employee: Employee, data: TimeEntryCreate) -> None:
        check_transition(EntryAction.CREATE, None, employee, employee.id)
        if data.hours is None or data.hours <= 0:
            logger.warning("Non-positive hours for employee id=%s", employee.id)
            raise ValidationError("Hours must be greater than 0")
        if not self._catalog.exists(data.wbs_code):
            logger.warning("Unknown WBS code %s", data.wbs_code)
            raise ValidationError(f"Unknown WBS code '{data.wbs_code}'")

    def _submit(self, employee: Employee, start: date, end: date) -> int:
        transition = TRANSITIONS[EntryAction.SUBMIT]
        (source,) = source_statuses(EntryAction.SUBMIT)
        submitted_at = datetime.now(tz=timezone.utc).isoformat()
        count = self._repo.submit_range(
            employee_id=employee.id,
            start_date=start,
            end_date=end,
            from_status=source,
            to_status=transition.target,  # type: ignore[arg-type]
            submitted_at=submitted_at,
        )
        if count:
            moved = self._repo.list_by_submission(employee.id, submitted_at)
            for entry in moved:
                self._audit.record(
                    employee,
                    AuditAction.SUBMIT,
                    TIME_ENTRIES,
                    entry.id,
                    old_values={"status": source.value},
                    new_values={"status": entry.status.value, "submitted_at": submitted_at},
                )
            total_hours = sum((e.hours for e in moved), _ZERO)
            self._notifier.notify_timesheet_submitted(
                employee, start, end, len(moved), total_hours
            )
        else:
            logger.info("No draft entries to submit for employee id=%s", employee.id)
        return count

    def _raise_lost_race(
        self, entry_id: int, action: EntryAction, actor: Employee
    ) -> None:
        """
        A gated write matched no row. Re-read the entry to report why:
        it vanished, it now belongs to someone else, or its status moved on.
        """
        current = self._repo.get_by_id(entry_id)
        if current is None:
            logger.warning("Time entry id=%s disappeared before %s", entry_id, action.value)
            raise NotFoundError(f"Time entry with id={entry_id} not found")
        check_transition(action, current.status, actor, current.employee_id)
        logger.warning("Time entry id=%s changed concurrently during %s", entry_id, action.value)
        raise InvalidStateError("Time entry was changed by someone else; reload and try again")

    def _enrich(self, entries: list[TimeEntry]) -> list[ReviewQueueEntry]:
        names = {e.id: e.name for e in self._employees.list_all(include_inactive=True)}
        labels = {item.wbs_code: item for item in self._catalog.list_for_employee()}
        enriched = []
        for entry in entries:
            item = labels.get(entry.wbs_code)
            enriched.append(
                ReviewQueueEntry(
                    **asdict(entry),
                    employee_name=names.get(entry.employee_id),
                    project_name=item.project_name if item else None,
                    task_description=item.task_description if item else None,
                    subtask_description=item.subtask_description if item else None,
                )
            )
        return enriched
