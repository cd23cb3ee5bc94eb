"""
Repository layer for the WBS catalog (`budget_items`).

Financial columns are projected inside the SQL itself: the employee-facing
statements select literal zeroes for budget_amount / dmf_budget_amount, so
those values never leave the store for a non-admin session.
"""
import sqlite3
from decimal import Decimal
from typing import Optional
import logging

from timetrack.models.budget_item import BudgetItem
from timetrack.core.logging_config import log_db_timing

logger = logging.getLogger(__name__)

_DESCRIPTIVE_COLUMNS = """
    wbs_code, project_number, project_name, contract,
    task_number, task_description, task_unit,
    subtask_number, subtask_description, fee_structure
"""

ADMIN_SELECT = f"""
SELECT {_DESCRIPTIVE_COLUMNS},
       budget_amount, dmf_budget_amount
  FROM budget_items
"""

EMPLOYEE_SELECT = f"""
SELECT {_DESCRIPTIVE_COLUMNS},
       0 AS budget_amount, 0 AS dmf_budget_amount
  FROM budget_items
"""

CATALOG_ORDER = "ORDER BY project_number, task_number, subtask_number, wbs_code"


class BudgetItemRepository:
    """Data access layer for WBS catalog rows."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        logger.trace("Initializing BudgetItemRepository")
        self._conn = conn

    # ------------------------------------------------------------------
    # Role-scoped reads
    # ------------------------------------------------------------------

    @log_db_timing
    def list_for_admin(self) -> list[BudgetItem]:
        """Return every catalog row including financial fields."""
        rows = self._conn.execute(f"{ADMIN_SELECT} {CATALOG_ORDER}").fetchall()
        return [BudgetItem.from_row(r) for r in rows]

    @log_db_timing
    def list_for_employee(self) -> list[BudgetItem]:
        """Return every catalog row with financial fields zeroed in SQL."""
        rows = self._conn.execute(f"{EMPLOYEE_SELECT} {CATALOG_ORDER}").fetchall()
        return [BudgetItem.from_row(r) for r in rows]

    @log_db_timing
    def get_for_admin(self, wbs_code: str) -> Optional[BudgetItem]:
        row = self._conn.execute(
            f"{ADMIN_SELECT} WHERE wbs_code = ?", (wbs_code,)
        ).fetchone()
        return BudgetItem.from_row(row) if row else None

    @log_db_timing
    def get_for_employee(self, wbs_code: str) -> Optional[BudgetItem]:
        row = self._conn.execute(
            f"{EMPLOYEE_SELECT} WHERE wbs_code = ?", (wbs_code,)
        ).fetchone()
        return BudgetItem.from_row(row) if row else None

    @log_db_timing
    def list_subtasks(
        self, project_number: int, task_number: int, include_financials: bool
    ) -> list[BudgetItem]:
        """Return the subtask rows of one task, numerically ordered."""
        select = ADMIN_SELECT if include_financials else EMPLOYEE_SELECT
        rows = self._conn.execute(
            f"""
            {select}
             WHERE project_number = ? AND task_number = ?
               AND subtask_number IS NOT NULL
             ORDER BY subtask_number, wbs_code
            """,
            (project_number, task_number),
        ).fetchall()
        return [BudgetItem.from_row(r) for r in rows]

    # ------------------------------------------------------------------
    # Hierarchy reads (no financial columns)
    # ------------------------------------------------------------------

    @log_db_timing
    def list_project_rows(self) -> list[sqlite3.Row]:
        """Return (project_number, project_name, contract) in catalog order."""
        return self._conn.execute(
            """
            SELECT project_number, project_name, contract
              FROM budget_items
             ORDER BY project_number, rowid
            """
        ).fetchall()

    @log_db_timing
    def list_task_rows(self, project_number: int) -> list[sqlite3.Row]:
        """Return the task columns of one project in catalog order."""
        return self._conn.execute(
            """
            SELECT project_number, task_number, task_description, task_unit
              FROM budget_items
             WHERE project_number = ?
             ORDER BY task_number, rowid
            """,
            (project_number,),
        ).fetchall()

    @log_db_timing
    def find_codes_by_path(
        self,
        project_number: int,
        task_number: int,
        subtask_number: Optional[Decimal],
    ) -> list[str]:
        """
        Return the WBS codes whose path matches exactly.

        A missing subtask number only matches task-level buckets
        (``subtask_number IS NULL``).
        """
        if subtask_number is None:
            rows = self._conn.execute(
                """
                SELECT wbs_code FROM budget_items
                 WHERE project_number = ? AND task_number = ?
                   AND subtask_number IS NULL
                 ORDER BY wbs_code
                """,
                (project_number, task_number),
            ).fetchall()
        else:
            rows = self._conn.execute(
                """
                SELECT wbs_code FROM budget_items
                 WHERE project_number = ? AND task_number = ?
                   AND subtask_number = ?
                 ORDER BY wbs_code
                """,
                (project_number, task_number, float(subtask_number)),
            ).fetchall()
        return [r["wbs_code"] for r in rows]

    @log_db_timing
    def exists(self, wbs_code: str) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM budget_items WHERE wbs_code = ?", (wbs_code,)
        ).fetchone()
        return row is not None

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @log_db_timing
    def upsert(self, item: BudgetItem) -> None:
        """Insert or replace a catalog row keyed by its WBS code."""
        logger.info("Upserting catalog row wbs_code=%s", item.wbs_code)
        self._conn.execute(
            """
            INSERT INTO budget_items (
                wbs_code, project_number, project_name, contract,
                task_number, task_description, task_unit,
                subtask_number, subtask_description, fee_structure,
                budget_amount, dmf_budget_amount
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(wbs_code) DO UPDATE SET
                project_number      = excluded.project_number,
                project_name        = excluded.project_name,
                contract            = excluded.contract,
                task_number         = excluded.task_number,
                task_description    = excluded.task_description,
                task_unit           = excluded.task_unit,
                subtask_number      = excluded.subtask_number,
                subtask_description = excluded.subtask_description,
                fee_structure       = excluded.fee_structure,
                budget_amount       = excluded.budget_amount,
                dmf_budget_amount   = excluded.dmf_budget_amount
            """,
            (
                item.wbs_code,
                item.project_number,
                item.project_name,
                item.contract,
                item.task_number,
                item.task_description,
                item.task_unit,
                float(item.subtask_number) if item.subtask_number is not None else None,
                item.subtask_description,
                item.fee_structure,
                float(item.budget_amount),
                float(item.dmf_budget_amount),
            ),
        )
