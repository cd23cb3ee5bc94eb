from datetime import date
from decimal import Decimal

import pytest

from timetrack.core.exceptions import PermissionDeniedError, ValidationError
from timetrack.models.audit_log import AuditAction
from timetrack.schemas.employee import EmployeeUpdate
from timetrack.schemas.time_entry import TimeEntryReview, TimeEntryUpdate
from timetrack.services.audit_service import AuditService
from timetrack.services.employee_service import EmployeeService

WORK_DAY = date(2024, 1, 15)


@pytest.fixture
def audit(conn):
    return AuditService(conn)


def _history(audit, admin, entry):
    return audit.list_recent(admin, table_name="time_entries", record_id=str(entry.id))


def test_every_entry_mutation_is_audited(john, admin, entries, make_entry, audit):
    entry = make_entry(john)
    entries.submit_timesheet(john, WORK_DAY)
    entries.review_entry(entry.id, admin, TimeEntryReview(status="approved"))

    history = _history(audit, admin, entry)

    assert [row.action for row in history] == [
        AuditAction.STATUS_CHANGE,
        AuditAction.SUBMIT,
        AuditAction.CREATE,
    ]
    review, submit, create = history
    assert create.user_id == john.user_id
    assert create.old_values is None
    assert create.new_values["status"] == "draft"
    assert create.new_values["wbs_code"] == "25002-01.1"
    assert submit.old_values == {"status": "draft"}
    assert submit.new_values["status"] == "submitted"
    assert review.user_id == admin.user_id
    assert review.old_values["status"] == "submitted"
    assert review.new_values["status"] == "approved"
    assert review.new_values["reviewed_by"] == admin.id


def test_editing_a_rejected_entry_keeps_the_old_review(john, admin, entries, make_entry, audit):
    entry = make_entry(john)
    entries.submit_timesheet(john, WORK_DAY)
    entries.review_entry(
        entry.id, admin, TimeEntryReview(status="rejected", review_notes="wrong task")
    )

    edited = entries.update_entry(entry.id, john, TimeEntryUpdate(hours=Decimal("5")))

    assert edited.review_notes is None
    latest = _history(audit, admin, entry)[0]
    assert latest.action == AuditAction.UPDATE
    assert latest.old_values["status"] == "rejected"
    assert latest.old_values["review_notes"] == "wrong task"
    assert latest.old_values["reviewed_by"] == admin.id
    assert latest.old_values["reviewed_at"] is not None
    assert latest.new_values["status"] == "draft"
    assert latest.new_values["review_notes"] is None


def test_delete_records_the_removed_entry(john, admin, entries, make_entry, audit):
    entry = make_entry(john, description="Layouts")

    entries.delete_entry(entry.id, john)

    latest = _history(audit, admin, entry)[0]
    assert latest.action == AuditAction.DELETE
    assert latest.old_values["description"] == "Layouts"
    assert latest.new_values is None


def test_refused_mutation_leaves_no_audit_row(john, admin, entries, make_entry, audit):
    entry = make_entry(john)

    with pytest.raises(ValidationError):
        entries.update_entry(entry.id, john, TimeEntryUpdate(hours=None))

    assert [row.action for row in _history(audit, admin, entry)] == [AuditAction.CREATE]


def test_employee_changes_are_classified(conn, admin, john, audit):
    service = EmployeeService(conn)

    service.update_employee(john.id, EmployeeUpdate(role="admin"), actor=admin)
    service.update_employee(john.id, EmployeeUpdate(active=False), actor=admin)
    service.update_employee(john.id, EmployeeUpdate(default_billing_rate=Decimal("90")), actor=admin)

    rows = audit.list_recent(admin, table_name="employees", record_id=str(john.id))
    assert [row.action for row in rows] == [
        AuditAction.UPDATE,
        AuditAction.STATUS_CHANGE,
        AuditAction.ROLE_CHANGE,
    ]
    assert rows[0].new_values["default_billing_rate"] == "90.0"
    assert all(row.user_id == admin.user_id for row in rows)


def test_provisioning_is_audited(conn, admin, audit):
    employee = EmployeeService(conn).provision("idp-new", "new.hire@dmfengineering.com")

    (row,) = audit.list_recent(admin, table_name="employees", record_id=str(employee.id))
    assert row.action == AuditAction.CREATE
    assert row.user_id == "idp-new"
    assert row.new_values["role"] == "employee"


def test_list_recent_is_newest_first_and_limited(john, admin, make_entry, audit):
    created = [make_entry(john, entry_date=date(2024, 1, 10 + i)) for i in range(5)]

    rows = audit.list_recent(admin, limit=3)

    assert [row.record_id for row in rows] == [str(e.id) for e in reversed(created)][:3]


def test_list_recent_requires_admin(john, audit):
    with pytest.raises(PermissionDeniedError):
        audit.list_recent(john)
