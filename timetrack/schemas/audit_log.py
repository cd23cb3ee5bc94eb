"""
Pydantic schemas for the security audit log.
"""
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from timetrack.models.audit_log import AuditAction


class AuditLogResponse(BaseModel):
    id: int
    user_id: Optional[str]
    action: AuditAction
    table_name: str
    record_id: Optional[str]
    old_values: Optional[dict[str, Any]]
    new_values: Optional[dict[str, Any]]
    created_at: datetime

    model_config = {"from_attributes": True}
