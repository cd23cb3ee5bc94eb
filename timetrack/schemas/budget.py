"""
Pydantic schemas for the budget utilization report (admin only).
"""
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class BudgetStatus(str, Enum):
    UNDER_BUDGET = "under-budget"
    ON_TRACK = "on-track"
    OVER_BUDGET = "over-budget"


class BudgetLine(BaseModel):
    """Approved spend against one WBS leaf."""

    wbs_code: str
    project_number: int
    project_name: str
    task_number: int
    task_description: str
    subtask_number: Optional[Decimal]
    subtask_description: Optional[str]
    budget_amount: Decimal
    total_hours: Decimal
    total_cost: Decimal
    utilization_percent: Decimal
    status: BudgetStatus


class BudgetReport(BaseModel):
    lines: list[BudgetLine]
    total_budget: Decimal
    total_spent: Decimal
    overall_utilization: Decimal
    overall_status: BudgetStatus
