"""
Domain model representing one WBS catalog leaf (a budget_items row).
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass
class BudgetItem:
    wbs_code: str
    project_number: int
    project_name: str
    contract: Optional[str]
    task_number: int
    task_description: str
    task_unit: Optional[str]
    subtask_number: Optional[Decimal]
    subtask_description: Optional[str]
    fee_structure: Optional[str]
    budget_amount: Decimal
    dmf_budget_amount: Decimal

    @property
    def is_task_bucket(self) -> bool:
        """True when the code addresses a task with no finer breakdown."""
        return self.subtask_number is None

    @classmethod
    def from_row(cls, row) -> "BudgetItem":
        """Build a BudgetItem from a sqlite3.Row object."""
        subtask_raw = row["subtask_number"]
        return cls(
            wbs_code=row["wbs_code"],
            project_number=row["project_number"],
            project_name=row["project_name"],
            contract=row["contract"],
            task_number=row["task_number"],
            task_description=row["task_description"],
            task_unit=row["task_unit"],
            subtask_number=Decimal(str(subtask_raw)) if subtask_raw is not None else None,
            subtask_description=row["subtask_description"],
            fee_structure=row["fee_structure"],
            budget_amount=Decimal(str(row["budget_amount"] or 0)),
            dmf_budget_amount=Decimal(str(row["dmf_budget_amount"] or 0)),
        )
