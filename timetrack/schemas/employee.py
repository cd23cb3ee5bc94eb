"""
Pydantic schemas for Employee request/response validation.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from timetrack.models.employee import EmployeeRole


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class EmployeeCreate(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=100, description="Auth identity id")
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    role: EmployeeRole = EmployeeRole.EMPLOYEE
    default_billing_rate: Optional[Decimal] = Field(None, ge=0)


class EmployeeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    role: Optional[EmployeeRole] = None
    active: Optional[bool] = None
    default_billing_rate: Optional[Decimal] = Field(None, ge=0)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class EmployeeResponse(BaseModel):
    id: int
    user_id: str
    name: str
    email: str
    role: EmployeeRole
    active: bool
    default_billing_rate: Optional[Decimal]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
