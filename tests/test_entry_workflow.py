from datetime import datetime
from decimal import Decimal

import pytest

from timetrack.core.exceptions import (
    InvalidStateError,
    PermissionDeniedError,
    ValidationError,
)
from timetrack.models.employee import Employee, EmployeeRole
from timetrack.models.time_entry import TimeEntryStatus
from timetrack.services.entry_workflow import (
    TERMINAL_STATUSES,
    TRANSITIONS,
    EntryAction,
    check_transition,
    clears_review_metadata,
    is_editable,
    review_action,
    source_statuses,
)

NOW = datetime(2024, 1, 1, 9, 0)


def _employee(employee_id, role=EmployeeRole.EMPLOYEE):
    return Employee(
        id=employee_id,
        user_id=f"user-{employee_id}",
        name=f"Employee {employee_id}",
        email=f"e{employee_id}@dmfengineering.com",
        role=role,
        active=True,
        created_at=NOW,
        updated_at=NOW,
        default_billing_rate=Decimal("80"),
    )


OWNER = _employee(1)
OTHER = _employee(2)
ADMIN = _employee(3, EmployeeRole.ADMIN)


@pytest.mark.parametrize("status", list(TimeEntryStatus))
def test_update_and_delete_allowed_only_from_draft_or_rejected(status):
    allowed = status in (TimeEntryStatus.DRAFT, TimeEntryStatus.REJECTED)
    for action in (EntryAction.UPDATE, EntryAction.DELETE):
        if allowed:
            check_transition(action, status, OWNER, OWNER.id)
        else:
            with pytest.raises(PermissionDeniedError):
                check_transition(action, status, OWNER, OWNER.id)


def test_transition_targets():
    assert check_transition(EntryAction.CREATE, None, OWNER, OWNER.id) == TimeEntryStatus.DRAFT
    assert check_transition(
        EntryAction.SUBMIT, TimeEntryStatus.DRAFT, OWNER, OWNER.id
    ) == TimeEntryStatus.SUBMITTED
    assert check_transition(
        EntryAction.APPROVE, TimeEntryStatus.SUBMITTED, ADMIN, OWNER.id
    ) == TimeEntryStatus.APPROVED
    assert check_transition(
        EntryAction.REJECT, TimeEntryStatus.SUBMITTED, ADMIN, OWNER.id
    ) == TimeEntryStatus.REJECTED
    assert check_transition(
        EntryAction.UPDATE, TimeEntryStatus.REJECTED, OWNER, OWNER.id
    ) == TimeEntryStatus.DRAFT
    assert check_transition(EntryAction.DELETE, TimeEntryStatus.DRAFT, OWNER, OWNER.id) is None


def test_approved_is_terminal():
    assert TERMINAL_STATUSES == {TimeEntryStatus.APPROVED}
    for transition in TRANSITIONS.values():
        assert TimeEntryStatus.APPROVED not in transition.sources


def test_admin_cannot_approve_a_draft():
    with pytest.raises(InvalidStateError) as exc:
        check_transition(EntryAction.APPROVE, TimeEntryStatus.DRAFT, ADMIN, OWNER.id)
    assert exc.value.status_code == 409


def test_non_admin_cannot_review():
    with pytest.raises(PermissionDeniedError) as exc:
        check_transition(EntryAction.REJECT, TimeEntryStatus.SUBMITTED, OWNER, OWNER.id)
    assert exc.value.status_code == 403


def test_owner_actions_require_the_owner():
    with pytest.raises(PermissionDeniedError):
        check_transition(EntryAction.UPDATE, TimeEntryStatus.DRAFT, OTHER, OWNER.id)
    # admin rights do not extend to editing someone else's entry
    with pytest.raises(PermissionDeniedError):
        check_transition(EntryAction.DELETE, TimeEntryStatus.DRAFT, ADMIN, OWNER.id)


def test_source_statuses_are_stable():
    assert source_statuses(EntryAction.UPDATE) == (
        TimeEntryStatus.DRAFT,
        TimeEntryStatus.REJECTED,
    )
    assert source_statuses(EntryAction.CREATE) == ()


def test_review_helpers():
    assert review_action(TimeEntryStatus.APPROVED) == EntryAction.APPROVE
    assert review_action(TimeEntryStatus.REJECTED) == EntryAction.REJECT
    with pytest.raises(ValidationError):
        review_action(TimeEntryStatus.DRAFT)
    assert clears_review_metadata(TimeEntryStatus.REJECTED)
    assert not clears_review_metadata(TimeEntryStatus.DRAFT)
    assert is_editable(TimeEntryStatus.REJECTED)
    assert not is_editable(TimeEntryStatus.SUBMITTED)
