"""
Pydantic schemas for in-app notifications.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from timetrack.models.notification import NotificationType


class NotificationResponse(BaseModel):
    id: int
    user_id: str
    title: str
    message: str
    type: NotificationType
    read: bool
    related_id: Optional[str]
    related_type: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UnreadCount(BaseModel):
    unread: int


class MarkAllReadResult(BaseModel):
    updated: int
