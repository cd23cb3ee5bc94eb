"""
Pydantic schemas for recents and AI-suggested entries.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from timetrack.core.dates import parse_calendar_date


class RecentEntry(BaseModel):
    """A recently used WBS code with catalog labels for one-click re-entry."""

    wbs_code: str
    project_number: Optional[int] = None
    project_name: Optional[str] = None
    task_number: Optional[int] = None
    task_description: Optional[str] = None
    subtask_number: Optional[Decimal] = None
    subtask_description: Optional[str] = None
    last_hours: Decimal
    last_description: Optional[str]
    last_used_at: datetime


class SuggestionRequest(BaseModel):
    transcript: str = Field(..., min_length=1, max_length=20000, description="What the employee did, in free text")
    local_date: Optional[date] = Field(None, description="The employee's local 'today' (YYYY-MM-DD)")

    @field_validator("transcript")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Transcript must not be blank")
        return v.strip()

    @field_validator("local_date", mode="before")
    @classmethod
    def calendar_day(cls, v):
        return v if v is None else parse_calendar_date(v)


class EntrySuggestion(BaseModel):
    """A suggestion whose WBS code resolved against the catalog."""

    wbs_code: str
    entry_date: date
    hours: Decimal
    description: Optional[str]
    project_name: str
    task_description: str
    subtask_description: Optional[str] = None


class SuggestionResponse(BaseModel):
    suggestions: list[EntrySuggestion]
    dropped_count: int = 0
