"""
WBS catalog service.

Exposes the project → task → subtask hierarchy as three deduplicated,
numerically ordered read views, resolves a (project, task, subtask) path to
its WBS code, and applies the role-scoped projection: admins receive the
financial columns, employees receive them zeroed by the store.
"""
import sqlite3
from decimal import Decimal
from typing import Optional
import logging

from timetrack.core.exceptions import NotFoundError
from timetrack.models.budget_item import BudgetItem
from timetrack.models.employee import Employee
from timetrack.repositories.budget_item_repository import BudgetItemRepository

logger = logging.getLogger(__name__)


class CatalogService:
    def __init__(self, conn: sqlite3.Connection) -> None:
        logger.trace("Initializing CatalogService")
        self._repo = BudgetItemRepository(conn)

    # ------------------------------------------------------------------
    # Hierarchy views
    # ------------------------------------------------------------------

    def list_projects(self) -> list[dict]:
        """
        One row per project number.

        A project number can carry several contracts (e.g. "Original" and a
        change order "CA1"); the first contract seen in catalog order is kept
        as the representative and the others are not surfaced here.
        """
        logger.info("Listing catalog projects")
        projects: dict[int, dict] = {}
        for row in self._repo.list_project_rows():
            if row["project_number"] in projects:
                continue
            projects[row["project_number"]] = {
                "project_number": row["project_number"],
                "project_name": row["project_name"],
                "contract": row["contract"],
            }
        return list(projects.values())

    def list_tasks(self, project_number: int) -> list[dict]:
        """Distinct tasks of one project, ascending by task number."""
        logger.info("Listing tasks for project=%s", project_number)
        tasks: dict[tuple[int, int], dict] = {}
        for row in self._repo.list_task_rows(project_number):
            key = (row["project_number"], row["task_number"])
            if key in tasks:
                continue
            tasks[key] = {
                "project_number": row["project_number"],
                "task_number": row["task_number"],
                "task_description": row["task_description"],
                "task_unit": row["task_unit"],
            }
        return list(tasks.values())

    def list_subtasks(
        self, viewer: Employee, project_number: int, task_number: int
    ) -> list[BudgetItem]:
        """Subtask rows (non-null subtask number) of one task, ascending."""
        logger.info("Listing subtasks for project=%s task=%s", project_number, task_number)
        return self._repo.list_subtasks(
            project_number, task_number, include_financials=viewer.is_admin
        )

    # ------------------------------------------------------------------
    # Role-scoped catalog rows
    # ------------------------------------------------------------------

    def list_items(self, viewer: Employee) -> list[BudgetItem]:
        if viewer.is_admin:
            logger.info("Listing catalog with financials for admin id=%s", viewer.id)
            return self._repo.list_for_admin()
        logger.info("Listing catalog without financials for employee id=%s", viewer.id)
        return self._repo.list_for_employee()

    def get_item(self, viewer: Employee, wbs_code: str) -> BudgetItem:
        """Exact-match lookup of one WBS code, projected for *viewer*."""
        item = (
            self._repo.get_for_admin(wbs_code)
            if viewer.is_admin
            else self._repo.get_for_employee(wbs_code)
        )
        if item is None:
            logger.warning("WBS code %s not found", wbs_code)
            raise NotFoundError(f"WBS code '{wbs_code}' not found")
        return item

    # ------------------------------------------------------------------
    # Path resolution
    # ------------------------------------------------------------------

    def resolve_wbs_code(
        self,
        project_number: int,
        task_number: int,
        subtask_number: Optional[Decimal] = None,
    ) -> str:
        """
        Resolve a catalog path to its WBS code by exact numeric match.

        ``subtask_number=None`` matches only the task-level bucket of the
        task, never its lowest subtask.

        Raises:
            NotFoundError: no catalog row has exactly this path.
        """
        logger.info(
            "Resolving WBS path project=%s task=%s subtask=%s",
            project_number,
            task_number,
            subtask_number,
        )
        codes = self._repo.find_codes_by_path(project_number, task_number, subtask_number)
        if not codes:
            logger.warning(
                "No WBS code for project=%s task=%s subtask=%s",
                project_number,
                task_number,
                subtask_number,
            )
            raise NotFoundError("No WBS code matches the selected project/task/subtask")
        if len(codes) > 1:
            logger.warning("Ambiguous WBS path resolved to %s; using %s", codes, codes[0])
        return codes[0]
