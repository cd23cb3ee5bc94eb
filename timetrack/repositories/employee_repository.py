"""
Repository layer for Employee persistence.
All SQL for the `employees` table lives here.
"""
import sqlite3
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
import logging

from timetrack.models.employee import Employee, EmployeeRole
from timetrack.core.logging_config import log_db_timing

logger = logging.getLogger(__name__)


class EmployeeRepository:
    """Data access layer for employee records."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        logger.trace("Initializing EmployeeRepository")
        self._conn = conn

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    @log_db_timing
    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        """Return an employee by id or None if missing."""
        row = self._conn.execute(
            "SELECT * FROM employees WHERE id = ?", (employee_id,)
        ).fetchone()
        return Employee.from_row(row) if row else None

    @log_db_timing
    def get_by_user_id(self, user_id: str) -> Optional[Employee]:
        """Return the employee linked to an auth identity."""
        row = self._conn.execute(
            "SELECT * FROM employees WHERE user_id = ?", (user_id,)
        ).fetchone()
        return Employee.from_row(row) if row else None

    @log_db_timing
    def get_by_email(self, email: str) -> Optional[Employee]:
        row = self._conn.execute(
            "SELECT * FROM employees WHERE email = ?", (email,)
        ).fetchone()
        return Employee.from_row(row) if row else None

    @log_db_timing
    def list_all(self, include_inactive: bool = False) -> list[Employee]:
        """Return employees ordered by name."""
        if include_inactive:
            rows = self._conn.execute(
                "SELECT * FROM employees ORDER BY name"
            ).fetchall()
        else:
            rows = self._conn.execute(
                "SELECT * FROM employees WHERE active = 1 ORDER BY name"
            ).fetchall()
        return [Employee.from_row(r) for r in rows]

    @log_db_timing
    def list_admins(self) -> list[Employee]:
        """Return active admins, oldest account first."""
        rows = self._conn.execute(
            "SELECT * FROM employees WHERE role = ? AND active = 1 ORDER BY id",
            (EmployeeRole.ADMIN.value,),
        ).fetchall()
        return [Employee.from_row(r) for r in rows]

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @log_db_timing
    def create(
        self,
        user_id: str,
        name: str,
        email: str,
        role: EmployeeRole = EmployeeRole.EMPLOYEE,
        default_billing_rate: Optional[Decimal] = None,
    ) -> Employee:
        """Insert a new employee row and return it."""
        logger.info("Creating employee record user_id=%s", user_id)
        now = datetime.now(tz=timezone.utc).isoformat()
        cursor = self._conn.execute(
            """
            INSERT INTO employees (
                user_id, name, email, role, active, default_billing_rate,
                created_at, updated_at
            )
            VALUES (?, ?, ?, ?, 1, ?, ?, ?)
            """,
            (
                user_id,
                name,
                email,
                role.value,
                float(default_billing_rate) if default_billing_rate is not None else None,
                now,
                now,
            ),
        )
        return self.get_by_id(cursor.lastrowid)  # type: ignore[return-value]

    @log_db_timing
    def update(self, employee_id: int, **fields) -> Optional[Employee]:
        """Update employee fields and return the updated row."""
        if not fields:
            logger.trace("No employee fields to update id=%s", employee_id)
            return self.get_by_id(employee_id)

        logger.info("Updating employee record id=%s", employee_id)
        fields["updated_at"] = datetime.now(tz=timezone.utc).isoformat()
        set_clause = ", ".join(f"{col} = ?" for col in fields)
        values = list(fields.values()) + [employee_id]
        self._conn.execute(
            f"UPDATE employees SET {set_clause} WHERE id = ?", values
        )
        return self.get_by_id(employee_id)
