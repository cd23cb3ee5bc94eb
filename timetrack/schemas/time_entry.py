"""
Pydantic schemas for TimeEntry request/response validation.
"""
from datetime import datetime, date
from decimal import Decimal
from typing import Optional
import logging

from pydantic import BaseModel, Field, field_validator, model_validator

from timetrack.core.dates import parse_calendar_date
from timetrack.models.time_entry import TimeEntryStatus

logger = logging.getLogger(__name__)

MAX_HOURS_PER_ENTRY = Decimal("24")
# hours are stored as REAL; two places survive the round trip
HOURS_QUANTUM = Decimal("0.01")


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class TimeEntryCreate(BaseModel):
    """Payload for creating a draft time entry."""

    wbs_code: str = Field(..., min_length=1, max_length=50, description="WBS code, e.g. '25002-01.1'")
    entry_date: date = Field(..., description="Calendar day the work was performed (YYYY-MM-DD)")
    hours: Decimal = Field(
        ..., gt=0, le=MAX_HOURS_PER_ENTRY, decimal_places=2, description="Hours worked, usually in 0.5 steps"
    )
    description: Optional[str] = Field(None, max_length=1000, description="What was done")

    @field_validator("entry_date", mode="before")
    @classmethod
    def calendar_day(cls, v):
        """Parse YYYY-MM-DD strictly, without any timezone conversion."""
        return v if v is None else parse_calendar_date(v)


class TimeEntryBatchCreate(BaseModel):
    """Payload for accepting several entries (e.g. reviewed AI suggestions) at once."""

    entries: list[TimeEntryCreate] = Field(..., min_length=1, max_length=100)


class TimeEntryUpdate(BaseModel):
    """
    Payload for editing a draft or rejected entry.
    The WBS code is fixed at creation and cannot be changed here.
    """

    entry_date: Optional[date] = Field(None, description="Calendar day (YYYY-MM-DD)")
    hours: Optional[Decimal] = Field(None, gt=0, le=MAX_HOURS_PER_ENTRY, decimal_places=2)
    description: Optional[str] = Field(None, max_length=1000)

    model_config = {"extra": "forbid"}

    @field_validator("entry_date", mode="before")
    @classmethod
    def calendar_day(cls, v):
        return v if v is None else parse_calendar_date(v)


class TimeEntryReview(BaseModel):
    """Payload for an admin review decision."""

    status: TimeEntryStatus = Field(..., description="'approved' or 'rejected'")
    review_notes: Optional[str] = Field(None, max_length=1000, description="Optional reviewer notes")

    @field_validator("status")
    @classmethod
    def decision_only(cls, v: TimeEntryStatus) -> TimeEntryStatus:
        """Only the two review outcomes are accepted."""
        logger.trace("Validating review decision")
        if v not in (TimeEntryStatus.APPROVED, TimeEntryStatus.REJECTED):
            logger.warning("Invalid review decision %s", v.value)
            raise ValueError("Review status must be 'approved' or 'rejected'")
        return v

    @field_validator("review_notes")
    @classmethod
    def strip_notes(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class SubmitDayRequest(BaseModel):
    entry_date: date = Field(..., description="Day whose draft entries are submitted")

    @field_validator("entry_date", mode="before")
    @classmethod
    def calendar_day(cls, v):
        return v if v is None else parse_calendar_date(v)


class SubmitWeekRequest(BaseModel):
    week_start: date
    week_end: date

    @field_validator("week_start", "week_end", mode="before")
    @classmethod
    def calendar_days(cls, v):
        return parse_calendar_date(v)

    @model_validator(mode="after")
    def end_not_before_start(self) -> "SubmitWeekRequest":
        if self.week_end < self.week_start:
            raise ValueError("week_end must not be before week_start")
        return self


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class TimeEntryResponse(BaseModel):
    """Response model for time entry data."""

    id: int
    employee_id: int
    wbs_code: str
    entry_date: date
    hours: Decimal
    description: Optional[str]
    status: TimeEntryStatus
    submitted_at: Optional[datetime]
    reviewed_at: Optional[datetime]
    reviewed_by: Optional[int]
    review_notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ReviewQueueEntry(TimeEntryResponse):
    """A time entry enriched with owner and catalog labels for the review screen."""

    employee_name: Optional[str] = None
    project_name: Optional[str] = None
    task_description: Optional[str] = None
    subtask_description: Optional[str] = None


class ReviewStats(BaseModel):
    total_pending: int
    pending_hours: Decimal
    total_employees: int
    avg_hours_per_entry: Decimal
    total_drafts: int
    draft_hours: Decimal


class SubmissionResult(BaseModel):
    submitted_count: int
    start_date: date
    end_date: date


class WeeklyCell(BaseModel):
    hours: Decimal = Decimal("0")
    descriptions: list[str] = Field(default_factory=list)


class WeeklyRow(BaseModel):
    wbs_code: str
    project_name: str
    days: dict[date, WeeklyCell]
    total_hours: Decimal


class WeeklySummary(BaseModel):
    week_start: date
    week_end: date
    days: list[date]
    rows: list[WeeklyRow]
    daily_totals: dict[date, Decimal]
    total_hours: Decimal
