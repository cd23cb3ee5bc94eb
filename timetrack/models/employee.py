"""
Domain model (plain Python dataclass) representing an Employee row from the DB.
This is the session context handed to every service call.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class EmployeeRole(str, Enum):
    ADMIN = "admin"
    EMPLOYEE = "employee"


@dataclass
class Employee:
    id: int
    user_id: str
    name: str
    email: str
    role: EmployeeRole
    active: bool
    created_at: datetime
    updated_at: datetime
    default_billing_rate: Optional[Decimal] = None

    @property
    def is_admin(self) -> bool:
        return self.role == EmployeeRole.ADMIN

    @classmethod
    def from_row(cls, row) -> "Employee":
        """Build an Employee from a sqlite3.Row object."""
        rate_raw = row["default_billing_rate"]
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            email=row["email"],
            role=EmployeeRole(row["role"]),
            active=bool(row["active"]),
            default_billing_rate=Decimal(str(rate_raw)) if rate_raw is not None else None,
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
