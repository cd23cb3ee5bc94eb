"""
Security audit log endpoints (admin only):
  GET /audit-log  – Newest audit rows first
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from timetrack.core.dependencies import db_dependency, require_admin
from timetrack.models.employee import Employee
from timetrack.schemas.audit_log import AuditLogResponse
from timetrack.services.audit_service import DEFAULT_AUDIT_LIMIT, AuditService

router = APIRouter(prefix="/audit-log", tags=["Audit Log"])


@router.get(
    "",
    response_model=list[AuditLogResponse],
    summary="List security audit log entries (admin only)",
)
def list_audit_log(
    limit: int = Query(DEFAULT_AUDIT_LIMIT, ge=1, le=500),
    table_name: Optional[str] = Query(None, description="e.g. 'time_entries' or 'employees'"),
    record_id: Optional[str] = Query(None, description="Narrow to one record's history"),
    conn=Depends(db_dependency),
    current_employee: Employee = Depends(require_admin),
):
    """
    - **limit**: Number of rows, newest first (default 50)
    - **table_name** / **record_id**: Optional filters
    """
    return AuditService(conn).list_recent(
        current_employee, limit=limit, table_name=table_name, record_id=record_id
    )
