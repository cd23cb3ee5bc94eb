"""
Employee endpoints:
  GET   /employees/me             – Current employee profile
  GET   /employees                – List employees (admin)
  POST  /employees                – Create an employee (admin)
  PATCH /employees/{employee_id}  – Update role, rate or status (admin)
"""
from fastapi import APIRouter, Depends, Query, status

from timetrack.core.dependencies import db_dependency, get_current_employee, require_admin
from timetrack.models.employee import Employee
from timetrack.schemas.employee import EmployeeCreate, EmployeeResponse, EmployeeUpdate
from timetrack.services.employee_service import EmployeeService

router = APIRouter(prefix="/employees", tags=["Employees"])


@router.get("/me", response_model=EmployeeResponse, summary="Get my employee profile")
def get_me(current_employee: Employee = Depends(get_current_employee)):
    return current_employee


@router.get("", response_model=list[EmployeeResponse], summary="List employees (admin only)")
def list_employees(
    include_inactive: bool = Query(False),
    conn=Depends(db_dependency),
    _: Employee = Depends(require_admin),
):
    return EmployeeService(conn).list_employees(include_inactive=include_inactive)


@router.post(
    "",
    response_model=EmployeeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an employee (admin only)",
)
def create_employee(
    data: EmployeeCreate,
    conn=Depends(db_dependency),
    admin: Employee = Depends(require_admin),
):
    return EmployeeService(conn).create_employee(data, actor=admin)


@router.patch(
    "/{employee_id}",
    response_model=EmployeeResponse,
    summary="Update an employee (admin only)",
)
def update_employee(
    employee_id: int,
    data: EmployeeUpdate,
    conn=Depends(db_dependency),
    admin: Employee = Depends(require_admin),
):
    """Role and active-flag changes are recorded in the security audit log."""
    return EmployeeService(conn).update_employee(employee_id, data, actor=admin)
