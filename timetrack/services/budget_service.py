"""
Budget utilization engine (admin only).

Spend is computed from approved entries only: hours multiplied by the owning
employee's billing rate, falling back to the configured default rate.
"""
import sqlite3
from collections import defaultdict
from decimal import Decimal
import logging

from timetrack.core.config import settings
from timetrack.core.exceptions import PermissionDeniedError
from timetrack.models.employee import Employee
from timetrack.repositories.budget_item_repository import BudgetItemRepository
from timetrack.repositories.time_entry_repository import TimeEntryRepository
from timetrack.schemas.budget import BudgetLine, BudgetReport, BudgetStatus

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")
_CENTS = Decimal("0.01")
_HUNDRED = Decimal("100")


def compute_utilization(cost: Decimal, budget: Decimal) -> Decimal:
    """Spend as a percentage of budget; 0 when there is no budget."""
    if budget <= 0:
        return _ZERO
    return cost / budget * _HUNDRED


def utilization_status(percent: Decimal) -> BudgetStatus:
    if percent <= settings.UNDER_BUDGET_THRESHOLD:
        return BudgetStatus.UNDER_BUDGET
    if percent <= settings.ON_TRACK_THRESHOLD:
        return BudgetStatus.ON_TRACK
    return BudgetStatus.OVER_BUDGET


class BudgetService:
    def __init__(self, conn: sqlite3.Connection) -> None:
        logger.trace("Initializing BudgetService")
        self._catalog = BudgetItemRepository(conn)
        self._entries = TimeEntryRepository(conn)

    def budget_report(self, viewer: Employee) -> BudgetReport:
        """
        Utilization of every catalog leaf, highest utilization first
        (ties broken by WBS code).
        """
        if not viewer.is_admin:
            logger.warning("Non-admin employee id=%s requested budget report", viewer.id)
            raise PermissionDeniedError("Only admins can view budget reports")

        logger.info("Building budget report for admin id=%s", viewer.id)
        hours_by_code: dict[str, Decimal] = defaultdict(lambda: _ZERO)
        cost_by_code: dict[str, Decimal] = defaultdict(lambda: _ZERO)
        for row in self._entries.sum_approved_hours_by_rate():
            hours = Decimal(str(row["hours"]))
            rate = (
                Decimal(str(row["billing_rate"]))
                if row["billing_rate"] is not None
                else settings.DEFAULT_BILLING_RATE
            )
            hours_by_code[row["wbs_code"]] += hours
            cost_by_code[row["wbs_code"]] += hours * rate

        scored = []
        total_budget = _ZERO
        total_spent = _ZERO
        for item in self._catalog.list_for_admin():
            cost = cost_by_code[item.wbs_code]
            utilization = compute_utilization(cost, item.budget_amount)
            total_budget += item.budget_amount
            total_spent += cost
            scored.append((utilization, item, cost))

        scored.sort(key=lambda s: (-s[0], s[1].wbs_code))
        lines = [
            BudgetLine(
                wbs_code=item.wbs_code,
                project_number=item.project_number,
                project_name=item.project_name,
                task_number=item.task_number,
                task_description=item.task_description,
                subtask_number=item.subtask_number,
                subtask_description=item.subtask_description,
                budget_amount=item.budget_amount.quantize(_CENTS),
                total_hours=hours_by_code[item.wbs_code],
                total_cost=cost.quantize(_CENTS),
                utilization_percent=utilization.quantize(_CENTS),
                status=utilization_status(utilization),
            )
            for utilization, item, cost in scored
        ]

        overall = compute_utilization(total_spent, total_budget)
        return BudgetReport(
            lines=lines,
            total_budget=total_budget.quantize(_CENTS),
            total_spent=total_spent.quantize(_CENTS),
            overall_utilization=overall.quantize(_CENTS),
            overall_status=utilization_status(overall),
        )
