"""
Pydantic schemas for the WBS catalog.
"""
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class WbsPath(BaseModel):
    """
    A project/task/subtask path as the entry form sends it.

    The three keys arrive as separate strings; they are parsed back to
    numbers here so resolution always compares numbers with numbers.
    An empty or missing subtask selects the task-level bucket.
    """

    project_number: int = Field(..., description="Project number, e.g. 25002")
    task_number: int = Field(..., description="Task number within the project")
    subtask_number: Optional[Decimal] = Field(
        None, description="Subtask number (e.g. 1.1); omit for a task-level bucket"
    )

    @field_validator("subtask_number", mode="before")
    @classmethod
    def blank_subtask_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class ProjectResponse(BaseModel):
    project_number: int
    project_name: str
    contract: Optional[str]


class TaskResponse(BaseModel):
    project_number: int
    task_number: int
    task_description: str
    task_unit: Optional[str]


class BudgetItemResponse(BaseModel):
    """A catalog leaf; financial fields are zero for employee sessions."""

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

    model_config = {"from_attributes": True}


class WbsResolution(BaseModel):
    wbs_code: str
