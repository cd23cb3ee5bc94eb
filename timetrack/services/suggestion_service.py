"""
AI-assisted entry suggestions.

The employee's transcript and the catalog (labels only) go to the AI
gateway; each returned suggestion is kept only when its WBS code exists in
the catalog exactly, its hours are a positive number no greater than a day,
and its date is a calendar day. Nothing is persisted here: accepted
suggestions come back through the batch-create endpoint.
"""
import sqlite3
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional
import logging

from timetrack.core.dates import parse_calendar_date
from timetrack.models.budget_item import BudgetItem
from timetrack.models.employee import Employee
from timetrack.repositories.budget_item_repository import BudgetItemRepository
from timetrack.schemas.suggestion import (
    EntrySuggestion,
    SuggestionRequest,
    SuggestionResponse,
)
from timetrack.schemas.time_entry import HOURS_QUANTUM, MAX_HOURS_PER_ENTRY
from timetrack.services.ai_suggestion_client import AISuggestionClient

logger = logging.getLogger(__name__)


def catalog_hierarchy(items: list[BudgetItem]) -> list[dict]:
    """Nest catalog rows as project -> tasks -> subtasks, without any amounts."""
    projects: dict[int, dict] = {}
    for item in items:
        project = projects.setdefault(
            item.project_number,
            {
                "project_number": item.project_number,
                "project_name": item.project_name,
                "tasks": {},
            },
        )
        task = project["tasks"].setdefault(
            item.task_number,
            {
                "task_number": item.task_number,
                "task_description": item.task_description,
                "subtasks": [],
            },
        )
        if item.is_task_bucket:
            task["wbs_code"] = item.wbs_code
        else:
            task["subtasks"].append(
                {
                    "wbs_code": item.wbs_code,
                    "subtask_number": str(item.subtask_number),
                    "subtask_description": item.subtask_description,
                }
            )
    return [
        {**project, "tasks": list(project["tasks"].values())}
        for project in projects.values()
    ]


class SuggestionService:
    def __init__(
        self,
        conn: sqlite3.Connection,
        client: Optional[AISuggestionClient] = None,
    ) -> None:
        logger.trace("Initializing SuggestionService")
        self._catalog = BudgetItemRepository(conn)
        self._client = client or AISuggestionClient()

    def suggest(self, employee: Employee, request: SuggestionRequest) -> SuggestionResponse:
        logger.info("Generating suggestions for employee id=%s", employee.id)
        items = self._catalog.list_for_employee()
        by_code = {item.wbs_code: item for item in items}
        local_date = request.local_date or date.today()

        raw = self._client.suggest(request.transcript, catalog_hierarchy(items), local_date)

        kept: list[EntrySuggestion] = []
        for candidate in raw:
            suggestion = self._validate(candidate, by_code)
            if suggestion is not None:
                kept.append(suggestion)
        dropped = len(raw) - len(kept)
        if dropped:
            logger.warning("Dropped %s of %s AI suggestions", dropped, len(raw))
        return SuggestionResponse(suggestions=kept, dropped_count=dropped)

    def _validate(
        self, candidate: Any, by_code: dict[str, BudgetItem]
    ) -> Optional[EntrySuggestion]:
        if not isinstance(candidate, dict):
            logger.warning("Dropping malformed suggestion %r", candidate)
            return None

        code = candidate.get("wbs_code")
        item = by_code.get(code) if isinstance(code, str) else None
        if item is None:
            logger.warning("Dropping suggestion with unknown WBS code %r", code)
            return None

        hours_raw = candidate.get("hours")
        if isinstance(hours_raw, bool) or not isinstance(hours_raw, (int, float, str)):
            logger.warning("Dropping suggestion with non-numeric hours %r", hours_raw)
            return None
        try:
            hours = Decimal(str(hours_raw))
        except InvalidOperation:
            logger.warning("Dropping suggestion with non-numeric hours %r", hours_raw)
            return None
        if hours.is_finite() and 0 < hours <= MAX_HOURS_PER_ENTRY:
            hours = hours.quantize(HOURS_QUANTUM, rounding=ROUND_HALF_UP)
        if not hours.is_finite() or hours <= 0 or hours > MAX_HOURS_PER_ENTRY:
            logger.warning("Dropping suggestion with out-of-range hours %s", hours_raw)
            return None

        try:
            entry_date = parse_calendar_date(candidate.get("entry_date"))
        except ValueError:
            logger.warning("Dropping suggestion with bad date %r", candidate.get("entry_date"))
            return None

        description = candidate.get("description")
        return EntrySuggestion(
            wbs_code=item.wbs_code,
            entry_date=entry_date,
            hours=hours,
            description=description if isinstance(description, str) else None,
            project_name=item.project_name,
            task_description=item.task_description,
            subtask_description=item.subtask_description,
        )
