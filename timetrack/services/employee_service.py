"""
Employee directory service.
Resolves the authenticated identity to its employee record and lets admins
maintain roles and billing rates. Every create and update is audited.
"""
import sqlite3
from typing import Optional
import logging

from timetrack.core.exceptions import NotFoundError, ValidationError
from timetrack.models.employee import Employee, EmployeeRole
from timetrack.repositories.employee_repository import EmployeeRepository
from timetrack.schemas.employee import EmployeeCreate, EmployeeUpdate
from timetrack.services.audit_service import AuditService

logger = logging.getLogger(__name__)


class EmployeeService:
    def __init__(self, conn: sqlite3.Connection) -> None:
        logger.trace("Initializing EmployeeService")
        self._repo = EmployeeRepository(conn)
        self._audit = AuditService(conn)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_employee(self, employee_id: int) -> Employee:
        logger.info("Fetching employee id=%s", employee_id)
        employee = self._repo.get_by_id(employee_id)
        if not employee:
            logger.warning("Employee id=%s not found", employee_id)
            raise NotFoundError(f"Employee with id={employee_id} not found")
        return employee

    def get_by_user_id(self, user_id: str) -> Optional[Employee]:
        return self._repo.get_by_user_id(user_id)

    def list_employees(self, include_inactive: bool = False) -> list[Employee]:
        logger.info("Listing employees include_inactive=%s", include_inactive)
        return self._repo.list_all(include_inactive=include_inactive)

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def provision(
        self, user_id: str, email: Optional[str], name: Optional[str] = None
    ) -> Employee:
        """
        Return the employee linked to *user_id*, creating an ``employee``-role
        record on first sign-in when the identity carries an email address.
        """
        existing = self._repo.get_by_user_id(user_id)
        if existing:
            return existing

        if not email:
            logger.warning("Cannot provision employee for user_id=%s without email", user_id)
            raise NotFoundError("No employee record is linked to this account")

        if self._repo.get_by_email(email):
            logger.warning("Email %s already linked to another identity", email)
            raise ValidationError("This email is already linked to another account")

        display_name = name or email.split("@")[0]
        logger.info("Provisioning employee for user_id=%s", user_id)
        employee = self._repo.create(user_id=user_id, name=display_name, email=email)
        # self-provisioned: the new identity is its own actor
        self._audit.record_employee_change(employee, None, employee)
        return employee

    def create_employee(
        self, data: EmployeeCreate, actor: Optional[Employee] = None
    ) -> Employee:
        logger.info("Creating employee user_id=%s", data.user_id)
        if self._repo.get_by_user_id(data.user_id):
            logger.warning("Duplicate employee user_id=%s", data.user_id)
            raise ValidationError("An employee is already linked to this identity")
        if self._repo.get_by_email(data.email):
            logger.warning("Duplicate employee email=%s", data.email)
            raise ValidationError("An employee with this email already exists")
        employee = self._repo.create(
            user_id=data.user_id,
            name=data.name,
            email=data.email,
            role=data.role,
            default_billing_rate=data.default_billing_rate,
        )
        self._audit.record_employee_change(actor, None, employee)
        return employee

    def update_employee(
        self,
        employee_id: int,
        data: EmployeeUpdate,
        actor: Optional[Employee] = None,
    ) -> Employee:
        logger.info("Updating employee id=%s", employee_id)
        before = self.get_employee(employee_id)

        fields = data.model_dump(exclude_unset=True)
        if "role" in fields and fields["role"] is not None:
            fields["role"] = EmployeeRole(fields["role"]).value
        if "active" in fields and fields["active"] is not None:
            fields["active"] = 1 if fields["active"] else 0
        if fields.get("default_billing_rate") is not None:
            fields["default_billing_rate"] = float(fields["default_billing_rate"])
        # name/role/active are NOT NULL columns
        fields = {
            k: v for k, v in fields.items()
            if v is not None or k == "default_billing_rate"
        }
        after = self._repo.update(employee_id, **fields)
        self._audit.record_employee_change(actor, before, after)  # type: ignore[arg-type]
        return after  # type: ignore[return-value]
