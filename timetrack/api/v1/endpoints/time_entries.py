"""
Time entry endpoints:
  POST   /time-entries                    – Create a draft time entry
  POST   /time-entries/batch              – Create several drafts (accepted suggestions)
  GET    /time-entries                    – List my time entries
  GET    /time-entries/week               – Weekly summary grid
  POST   /time-entries/submit-day         – Submit my drafts of one day
  POST   /time-entries/submit-week        – Submit my drafts of a date range
  GET    /time-entries/pending            – Submitted entries awaiting review (admin)
  GET    /time-entries/drafts             – Draft entries of all employees (admin)
  GET    /time-entries/review-stats       – Review dashboard counters (admin)
  GET    /time-entries/{entry_id}         – Get a specific time entry
  PATCH  /time-entries/{entry_id}         – Update own draft/rejected entry
  DELETE /time-entries/{entry_id}         – Delete own draft/rejected entry
  POST   /time-entries/{entry_id}/review  – Approve or reject an entry (admin)
"""
from datetime import date
from typing import Optional
import sqlite3

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from timetrack.core.dates import parse_calendar_date, start_of_week
from timetrack.core.dependencies import (
    db_dependency,
    get_current_employee,
    require_admin,
)
from timetrack.core.exceptions import ValidationError
from timetrack.models.employee import Employee
from timetrack.models.time_entry import TimeEntryStatus
from timetrack.schemas.time_entry import (
    ReviewQueueEntry,
    ReviewStats,
    SubmissionResult,
    SubmitDayRequest,
    SubmitWeekRequest,
    TimeEntryBatchCreate,
    TimeEntryCreate,
    TimeEntryResponse,
    TimeEntryReview,
    TimeEntryUpdate,
    WeeklySummary,
)
from timetrack.services.notification_service import NotificationService
from timetrack.services.time_entry_service import TimeEntryService

router = APIRouter(prefix="/time-entries", tags=["Time Entries"])


def _email_after_commit(
    conn: sqlite3.Connection,
    notifier: NotificationService,
    background_tasks: BackgroundTasks,
) -> None:
    """Commit the transition first; queued emails then go out without holding the write lock."""
    conn.commit()
    background_tasks.add_task(notifier.send_pending)


@router.post(
    "",
    response_model=TimeEntryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a draft time entry",
)
def create_time_entry(
    data: TimeEntryCreate,
    conn=Depends(db_dependency),
    current_employee: Employee = Depends(get_current_employee),
):
    """
    Create a draft time entry for the current employee.

    - **wbs_code**: WBS code of the catalog leaf, e.g. `25002-01.1`
    - **entry_date**: Day the work was performed (YYYY-MM-DD)
    - **hours**: Hours worked, greater than 0
    - **description**: Optional description of the work
    """
    service = TimeEntryService(conn)
    return service.create_entry(current_employee, data)


@router.post(
    "/batch",
    response_model=list[TimeEntryResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create several draft time entries at once",
)
def create_time_entries(
    data: TimeEntryBatchCreate,
    conn=Depends(db_dependency),
    current_employee: Employee = Depends(get_current_employee),
):
    """All entries are created, or none are."""
    service = TimeEntryService(conn)
    return service.create_entries(current_employee, data)


@router.get(
    "",
    response_model=list[TimeEntryResponse],
    summary="List my time entries",
)
def list_my_entries(
    status_filter: Optional[TimeEntryStatus] = Query(
        None,
        alias="status",
        description="Filter by status: 'draft', 'submitted', 'approved' or 'rejected'",
    ),
    conn=Depends(db_dependency),
    current_employee: Employee = Depends(get_current_employee),
):
    """Return the current employee's entries, newest entry date first."""
    service = TimeEntryService(conn)
    return service.list_my_entries(current_employee, status_filter)


@router.get(
    "/week",
    response_model=WeeklySummary,
    summary="Weekly timesheet summary",
)
def weekly_summary(
    week_start: Optional[str] = Query(
        None, description="First day of the week (YYYY-MM-DD); defaults to this week's Sunday"
    ),
    conn=Depends(db_dependency),
    current_employee: Employee = Depends(get_current_employee),
):
    if week_start is None:
        start = start_of_week(date.today())
    else:
        try:
            start = parse_calendar_date(week_start)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
    service = TimeEntryService(conn)
    return service.weekly_summary(current_employee, start)


@router.post(
    "/submit-day",
    response_model=SubmissionResult,
    summary="Submit my draft entries of one day",
)
def submit_day(
    data: SubmitDayRequest,
    background_tasks: BackgroundTasks,
    conn=Depends(db_dependency),
    current_employee: Employee = Depends(get_current_employee),
):
    """Submitting a day with no drafts is not an error; the count is 0."""
    notifier = NotificationService(conn)
    service = TimeEntryService(conn, notifier=notifier)
    count = service.submit_timesheet(current_employee, data.entry_date)
    _email_after_commit(conn, notifier, background_tasks)
    return SubmissionResult(
        submitted_count=count, start_date=data.entry_date, end_date=data.entry_date
    )


@router.post(
    "/submit-week",
    response_model=SubmissionResult,
    summary="Submit my draft entries of a date range",
)
def submit_week(
    data: SubmitWeekRequest,
    background_tasks: BackgroundTasks,
    conn=Depends(db_dependency),
    current_employee: Employee = Depends(get_current_employee),
):
    notifier = NotificationService(conn)
    service = TimeEntryService(conn, notifier=notifier)
    count = service.submit_week(current_employee, data.week_start, data.week_end)
    _email_after_commit(conn, notifier, background_tasks)
    return SubmissionResult(
        submitted_count=count, start_date=data.week_start, end_date=data.week_end
    )


@router.get(
    "/pending",
    response_model=list[ReviewQueueEntry],
    summary="List submitted entries awaiting review (admin only)",
)
def list_pending_entries(
    conn=Depends(db_dependency),
    _: Employee = Depends(require_admin),
):
    service = TimeEntryService(conn)
    return service.list_pending()


@router.get(
    "/drafts",
    response_model=list[ReviewQueueEntry],
    summary="List draft entries of all employees (admin only)",
)
def list_draft_entries(
    conn=Depends(db_dependency),
    _: Employee = Depends(require_admin),
):
    service = TimeEntryService(conn)
    return service.list_drafts()


@router.get(
    "/review-stats",
    response_model=ReviewStats,
    summary="Review dashboard counters (admin only)",
)
def review_stats(
    conn=Depends(db_dependency),
    _: Employee = Depends(require_admin),
):
    service = TimeEntryService(conn)
    return service.review_stats()


@router.get(
    "/{entry_id}",
    response_model=TimeEntryResponse,
    summary="Get a specific time entry",
)
def get_time_entry(
    entry_id: int,
    conn=Depends(db_dependency),
    current_employee: Employee = Depends(get_current_employee),
):
    """Employees see their own entries; admins see any entry."""
    service = TimeEntryService(conn)
    return service.get_entry_for(entry_id, current_employee)


@router.patch(
    "/{entry_id}",
    response_model=TimeEntryResponse,
    summary="Update a draft or rejected time entry",
)
def update_time_entry(
    entry_id: int,
    data: TimeEntryUpdate,
    conn=Depends(db_dependency),
    current_employee: Employee = Depends(get_current_employee),
):
    """
    Update your own entry while it is a draft or was rejected.
    Editing a rejected entry returns it to draft and clears the review.
    The WBS code cannot be changed.
    """
    service = TimeEntryService(conn)
    return service.update_entry(entry_id, current_employee, data)


@router.delete(
    "/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a draft or rejected time entry",
)
def delete_time_entry(
    entry_id: int,
    conn=Depends(db_dependency),
    current_employee: Employee = Depends(get_current_employee),
):
    service = TimeEntryService(conn)
    service.delete_entry(entry_id, current_employee)


@router.post(
    "/{entry_id}/review",
    response_model=TimeEntryResponse,
    summary="Approve or reject a submitted entry (admin only)",
)
def review_time_entry(
    entry_id: int,
    data: TimeEntryReview,
    background_tasks: BackgroundTasks,
    conn=Depends(db_dependency),
    current_employee: Employee = Depends(get_current_employee),
):
    """
    - **status**: `approved` or `rejected`
    - **review_notes**: Optional notes, kept on rejection
    """
    notifier = NotificationService(conn)
    service = TimeEntryService(conn, notifier=notifier)
    reviewed = service.review_entry(entry_id, current_employee, data)
    _email_after_commit(conn, notifier, background_tasks)
    return reviewed
