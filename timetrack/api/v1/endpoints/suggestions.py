"""
Entry shortcut endpoints:
  GET  /suggestions/recent  – My recently used WBS codes
  POST /suggestions         – AI-suggested entries from a work transcript

Suggestions are not saved; accepted ones are posted to /time-entries/batch.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from timetrack.core.dependencies import db_dependency, get_current_employee
from timetrack.models.employee import Employee
from timetrack.schemas.suggestion import RecentEntry, SuggestionRequest, SuggestionResponse
from timetrack.services.recent_entry_service import RecentEntryService
from timetrack.services.suggestion_service import SuggestionService

router = APIRouter(prefix="/suggestions", tags=["Suggestions"])


@router.get(
    "/recent",
    response_model=list[RecentEntry],
    summary="List my recently used WBS codes",
)
def recent_entries(
    limit: Optional[int] = Query(None, ge=1, le=50),
    conn=Depends(db_dependency),
    current_employee: Employee = Depends(get_current_employee),
):
    return RecentEntryService(conn).recent_entries(current_employee, limit=limit)


@router.post(
    "",
    response_model=SuggestionResponse,
    summary="Suggest time entries from a work transcript",
)
def suggest_entries(
    data: SuggestionRequest,
    conn=Depends(db_dependency),
    current_employee: Employee = Depends(get_current_employee),
):
    """
    - **transcript**: What you worked on, in your own words
    - **local_date**: Your local "today" (YYYY-MM-DD), used to resolve relative days
    """
    return SuggestionService(conn).suggest(current_employee, data)
