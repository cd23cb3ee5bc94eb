"""
Security audit trail.

Every time entry mutation and every change to an employee's role, rate or
active flag is recorded on the caller's connection, so the audit row commits
or rolls back together with the change it describes. Editing a rejected
entry keeps its previous review (reviewer, timestamp, notes) here after the
entry itself has been reset to draft.
"""
import sqlite3
from dataclasses import asdict
from typing import Any, Optional
import logging

from timetrack.core.exceptions import PermissionDeniedError
from timetrack.models.audit_log import AuditAction, AuditLogEntry
from timetrack.models.employee import Employee
from timetrack.models.time_entry import TimeEntry
from timetrack.repositories.audit_log_repository import AuditLogRepository

logger = logging.getLogger(__name__)

TIME_ENTRIES = "time_entries"
EMPLOYEES = "employees"

DEFAULT_AUDIT_LIMIT = 50

# created_at/updated_at change on every write and say nothing useful
_ENTRY_FIELDS = (
    "employee_id",
    "wbs_code",
    "entry_date",
    "hours",
    "description",
    "status",
    "submitted_at",
    "reviewed_at",
    "reviewed_by",
    "review_notes",
)

_EMPLOYEE_FIELDS = ("user_id", "name", "email", "role", "active", "default_billing_rate")


def entry_snapshot(entry: TimeEntry) -> dict[str, Any]:
    values = asdict(entry)
    values["status"] = entry.status.value
    return {key: values[key] for key in _ENTRY_FIELDS}


def employee_snapshot(employee: Employee) -> dict[str, Any]:
    values = asdict(employee)
    values["role"] = employee.role.value
    return {key: values[key] for key in _EMPLOYEE_FIELDS}


class AuditService:
    def __init__(self, conn: sqlite3.Connection) -> None:
        logger.trace("Initializing AuditService")
        self._repo = AuditLogRepository(conn)

    def record(
        self,
        actor: Optional[Employee],
        action: AuditAction,
        table_name: str,
        record_id: Any,
        old_values: Optional[dict[str, Any]] = None,
        new_values: Optional[dict[str, Any]] = None,
    ) -> AuditLogEntry:
        """Append one audit row. Failures propagate and abort the caller's transaction."""
        return self._repo.create(
            user_id=actor.user_id if actor else None,
            action=action,
            table_name=table_name,
            record_id=str(record_id) if record_id is not None else None,
            old_values=old_values,
            new_values=new_values,
        )

    def record_entry_change(
        self,
        actor: Employee,
        action: AuditAction,
        before: Optional[TimeEntry],
        after: Optional[TimeEntry],
    ) -> AuditLogEntry:
        current = after or before
        return self.record(
            actor,
            action,
            TIME_ENTRIES,
            current.id if current else None,
            old_values=entry_snapshot(before) if before else None,
            new_values=entry_snapshot(after) if after else None,
        )

    def record_employee_change(
        self,
        actor: Optional[Employee],
        before: Optional[Employee],
        after: Employee,
    ) -> AuditLogEntry:
        """
        Audit an employee create or update. A changed role is reported as
        ``role_change``, a changed active flag as ``status_change``.
        """
        if before is None:
            action = AuditAction.CREATE
        elif before.role != after.role:
            action = AuditAction.ROLE_CHANGE
        elif before.active != after.active:
            action = AuditAction.STATUS_CHANGE
        else:
            action = AuditAction.UPDATE
        return self.record(
            actor,
            action,
            EMPLOYEES,
            after.id,
            old_values=employee_snapshot(before) if before else None,
            new_values=employee_snapshot(after),
        )

    def list_recent(
        self,
        viewer: Employee,
        limit: int = DEFAULT_AUDIT_LIMIT,
        table_name: Optional[str] = None,
        record_id: Optional[str] = None,
    ) -> list[AuditLogEntry]:
        """Newest audit rows first. Admin only."""
        if not viewer.is_admin:
            logger.warning("Non-admin employee id=%s requested the audit log", viewer.id)
            raise PermissionDeniedError("Only admins can view the security audit log")
        logger.info("Listing audit log limit=%s table=%s record=%s", limit, table_name, record_id)
        return self._repo.list_recent(limit=limit, table_name=table_name, record_id=record_id)
