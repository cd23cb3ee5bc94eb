"""
WBS catalog endpoints:
  GET /catalog/projects                                   – Distinct projects
  GET /catalog/projects/{project_number}/tasks            – Tasks of a project
  GET /catalog/projects/{project_number}/tasks/{task_number}/subtasks
                                                          – Subtasks of a task
  GET /catalog/resolve                                    – Resolve a path to its WBS code
  GET /catalog/items                                      – All catalog leaves (role-scoped)
  GET /catalog/items/{wbs_code}                           – One catalog leaf (role-scoped)
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from timetrack.core.dependencies import db_dependency, get_current_employee
from timetrack.models.employee import Employee
from timetrack.schemas.budget_item import (
    BudgetItemResponse,
    ProjectResponse,
    TaskResponse,
    WbsPath,
    WbsResolution,
)
from timetrack.services.catalog_service import CatalogService

router = APIRouter(prefix="/catalog", tags=["Catalog"])


@router.get("/projects", response_model=list[ProjectResponse], summary="List projects")
def list_projects(
    conn=Depends(db_dependency),
    _: Employee = Depends(get_current_employee),
):
    return CatalogService(conn).list_projects()


@router.get(
    "/projects/{project_number}/tasks",
    response_model=list[TaskResponse],
    summary="List the tasks of a project",
)
def list_tasks(
    project_number: int,
    conn=Depends(db_dependency),
    _: Employee = Depends(get_current_employee),
):
    return CatalogService(conn).list_tasks(project_number)


@router.get(
    "/projects/{project_number}/tasks/{task_number}/subtasks",
    response_model=list[BudgetItemResponse],
    summary="List the subtasks of a task",
)
def list_subtasks(
    project_number: int,
    task_number: int,
    conn=Depends(db_dependency),
    current_employee: Employee = Depends(get_current_employee),
):
    return CatalogService(conn).list_subtasks(current_employee, project_number, task_number)


@router.get(
    "/resolve",
    response_model=WbsResolution,
    summary="Resolve a project/task/subtask path to its WBS code",
)
def resolve_wbs_code(
    path: Annotated[WbsPath, Query()],
    conn=Depends(db_dependency),
    _: Employee = Depends(get_current_employee),
):
    """Omit `subtask_number` (or send it empty) to select a task-level bucket."""
    code = CatalogService(conn).resolve_wbs_code(
        path.project_number, path.task_number, path.subtask_number
    )
    return WbsResolution(wbs_code=code)


@router.get(
    "/items",
    response_model=list[BudgetItemResponse],
    summary="List catalog leaves",
)
def list_items(
    conn=Depends(db_dependency),
    current_employee: Employee = Depends(get_current_employee),
):
    """Budget amounts are returned as 0 for non-admin employees."""
    return CatalogService(conn).list_items(current_employee)


@router.get(
    "/items/{wbs_code}",
    response_model=BudgetItemResponse,
    summary="Get one catalog leaf",
)
def get_item(
    wbs_code: str,
    conn=Depends(db_dependency),
    current_employee: Employee = Depends(get_current_employee),
):
    return CatalogService(conn).get_item(current_employee, wbs_code)
