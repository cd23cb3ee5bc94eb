"""
Notification endpoints:
  GET   /notifications                 – My latest notifications
  GET   /notifications/unread-count    – Number of unread notifications
  PATCH /notifications/{id}/read       – Mark one notification read
  POST  /notifications/read-all        – Mark all my notifications read
"""
from fastapi import APIRouter, Depends, Query

from timetrack.core.dependencies import db_dependency, get_current_employee
from timetrack.models.employee import Employee
from timetrack.schemas.notification import (
    MarkAllReadResult,
    NotificationResponse,
    UnreadCount,
)
from timetrack.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=list[NotificationResponse], summary="List my notifications")
def list_notifications(
    limit: int = Query(10, ge=1, le=100),
    conn=Depends(db_dependency),
    current_employee: Employee = Depends(get_current_employee),
):
    return NotificationService(conn).list_for_user(current_employee, limit=limit)


@router.get("/unread-count", response_model=UnreadCount, summary="Count unread notifications")
def unread_count(
    conn=Depends(db_dependency),
    current_employee: Employee = Depends(get_current_employee),
):
    return UnreadCount(unread=NotificationService(conn).unread_count(current_employee))


@router.patch(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark a notification read",
)
def mark_read(
    notification_id: int,
    conn=Depends(db_dependency),
    current_employee: Employee = Depends(get_current_employee),
):
    return NotificationService(conn).mark_read(notification_id, current_employee)


@router.post("/read-all", response_model=MarkAllReadResult, summary="Mark all notifications read")
def mark_all_read(
    conn=Depends(db_dependency),
    current_employee: Employee = Depends(get_current_employee),
):
    return MarkAllReadResult(updated=NotificationService(conn).mark_all_read(current_employee))
