"""
FastAPI dependency injection helpers for authentication and authorisation.
"""
from typing import Generator, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
import logging

from timetrack.core.exceptions import PermissionDeniedError
from timetrack.core.security import decode_token
from timetrack.db.database import get_db
from timetrack.models.employee import Employee, EmployeeRole
from timetrack.services.employee_service import EmployeeService

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# DB dependency
# ---------------------------------------------------------------------------

def db_dependency() -> Generator:
    """Yield a database connection for the duration of a request."""
    logger.trace("Creating database dependency connection")
    with get_db() as conn:
        yield conn


# ---------------------------------------------------------------------------
# Auth dependencies
# ---------------------------------------------------------------------------

def get_current_employee(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    conn=Depends(db_dependency),
) -> Employee:
    """
    Decode the identity provider's Bearer token and return the Employee
    linked to its subject, provisioning one on first sign-in.
    Raises HTTP 401 if the token is missing, invalid or expired, and 403 if
    the employee is inactive or cannot be provisioned.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        logger.warning("Request without bearer credentials")
        raise credentials_exception
    try:
        payload = decode_token(credentials.credentials)
        if payload.get("type", "access") != "access":
            logger.warning("Access token type mismatch")
            raise credentials_exception
        user_id: str = payload.get("sub")
        if user_id is None:
            logger.warning("Access token missing subject")
            raise credentials_exception
    except JWTError:
        logger.error("Failed to decode access token", exc_info=True)
        raise credentials_exception

    service = EmployeeService(conn)
    employee = service.get_by_user_id(user_id)
    if employee is None:
        email = payload.get("email")
        if not email:
            logger.warning("No employee linked to subject and no email claim")
            raise PermissionDeniedError("No employee record is linked to this account")
        employee = service.provision(user_id, email, payload.get("name"))

    if not employee.active:
        logger.warning("Inactive employee account id=%s", employee.id)
        raise PermissionDeniedError("Employee account is inactive")
    logger.info("Authenticated employee id=%s", employee.id)
    return employee


# ---------------------------------------------------------------------------
# Role-based access control
# ---------------------------------------------------------------------------

def require_roles(*roles: EmployeeRole):
    """
    Factory that returns a dependency which enforces that the current
    employee has one of the specified roles.

    Usage::
        @router.get("/admin-only")
        def admin_only(employee: Employee = Depends(require_roles(EmployeeRole.ADMIN))):
            ...
    """
    def _check(current_employee: Employee = Depends(get_current_employee)) -> Employee:
        if current_employee.role not in roles:
            logger.warning(
                "Employee id=%s lacks required roles: %s",
                current_employee.id,
                ", ".join(role.value for role in roles),
            )
            raise PermissionDeniedError("You do not have permission to perform this action")
        return current_employee
    return _check


require_admin = require_roles(EmployeeRole.ADMIN)
