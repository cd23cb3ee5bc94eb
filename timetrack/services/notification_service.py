"""
Notification sink.

Writes in-app notification rows and, when an email API key is configured,
sends a plain-text email through the Resend HTTP API. Review and submission
notifications are fire-and-forget: a delivery failure is logged and never
undoes the entry mutation that triggered it.

The in-app row is written inside the caller's transaction. Emails are only
queued there and go out through ``send_pending`` once that transaction has
committed, so a slow mail provider never holds the SQLite write lock.
"""
import sqlite3
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable, Optional
import logging

import httpx

from timetrack.core.config import settings
from timetrack.core.exceptions import ExternalServiceError, NotFoundError
from timetrack.models.employee import Employee
from timetrack.models.notification import Notification, NotificationType
from timetrack.models.time_entry import TimeEntry, TimeEntryStatus
from timetrack.repositories.employee_repository import EmployeeRepository
from timetrack.repositories.notification_repository import NotificationRepository

logger = logging.getLogger(__name__)

_SAVEPOINT = "notification"


@dataclass
class PendingEmail:
    to: list[str]
    subject: str
    text: str


def format_hours(hours: Decimal) -> str:
    """Render hours without trailing zeros: 7.50 -> '7.5', 8.0 -> '8'."""
    return format(hours.normalize(), "f")


class EmailClient:
    """Minimal client for the Resend ``POST /emails`` endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        sender: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = 30.0,
    ) -> None:
        self._api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self._api_url = api_url or settings.EMAIL_API_URL
        self._sender = sender or settings.EMAIL_FROM
        self._transport = transport
        self._timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    def send(self, to: list[str], subject: str, text: str) -> None:
        if not self.enabled:
            logger.debug("Email delivery disabled; skipping '%s'", subject)
            return
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }
        payload = {"from": self._sender, "to": to, "subject": subject, "text": text}
        logger.info("Sending email '%s' to %s recipient(s)", subject, len(to))
        try:
            with httpx.Client(transport=self._transport, timeout=self._timeout) as client:
                r = client.post(self._api_url, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("Email transport error: %s", exc)
            raise ExternalServiceError("Email delivery failed") from exc
        if r.status_code >= 400:
            logger.warning("Email API returned %d %s", r.status_code, r.text[:200])
            raise ExternalServiceError("Email delivery failed")


class NotificationService:
    def __init__(
        self,
        conn: sqlite3.Connection,
        email_client: Optional[EmailClient] = None,
    ) -> None:
        logger.trace("Initializing NotificationService")
        self._conn = conn
        self._repo = NotificationRepository(conn)
        self._employees = EmployeeRepository(conn)
        self._email = email_client or EmailClient()
        self._outbox: list[PendingEmail] = []

    # ------------------------------------------------------------------
    # Sink
    # ------------------------------------------------------------------

    def notify(
        self,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
        related_id: Optional[str] = None,
        related_type: Optional[str] = None,
    ) -> Notification:
        """Store one in-app notification for an auth user."""
        logger.info("Notifying user_id=%s title=%s", user_id, title)
        return self._repo.create(
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            related_id=related_id,
            related_type=related_type,
        )

    def notify_entry_reviewed(self, entry: TimeEntry, owner: Employee) -> None:
        """Tell the owner their entry was approved or rejected. Never raises."""
        approved = entry.status == TimeEntryStatus.APPROVED
        verdict = "Approved" if approved else "Rejected"
        message = (
            f"Your time entry for {entry.entry_date.isoformat()} "
            f"({format_hours(entry.hours)} hours on {entry.wbs_code}) "
            f"has been {entry.status.value}."
        )
        if entry.review_notes:
            message += f" Review notes: {entry.review_notes}"

        self._safely(
            "entry review",
            lambda: self.notify(
                user_id=owner.user_id,
                title=f"Time Entry {verdict}",
                message=message,
                type=NotificationType.SUCCESS if approved else NotificationType.WARNING,
                related_id=str(entry.id),
                related_type="time_entry",
            ),
        )
        self._queue_email(
            [owner.email],
            f"Time Entry {verdict} - {entry.entry_date.isoformat()}",
            message,
        )

    def notify_timesheet_submitted(
        self,
        employee: Employee,
        start_date: date,
        end_date: date,
        entry_count: int,
        total_hours: Decimal,
    ) -> None:
        """Confirm a submission to the employee and alert the admins. Never raises."""
        if start_date == end_date:
            period = f"{start_date.isoformat()}"
        else:
            period = f"week {start_date.isoformat()} to {end_date.isoformat()}"
        self._safely(
            "timesheet submission",
            lambda: self.notify(
                user_id=employee.user_id,
                title="Timesheet Submitted",
                message=(
                    f"Your timesheet for {period} ({format_hours(total_hours)}h) "
                    "has been submitted for admin review."
                ),
                type=NotificationType.INFO,
                related_type="timesheet",
            ),
        )

        admin_emails = [a.email for a in self._employees.list_admins()]
        if not admin_emails:
            logger.warning("No admin to notify about submission by employee id=%s", employee.id)
            return
        self._queue_email(
            admin_emails,
            f"Timesheet Submitted for Review - {employee.name}",
            (
                f"{employee.name} has submitted their timesheet for review.\n"
                f"Period: {start_date.isoformat()} to {end_date.isoformat()}\n"
                f"Entries: {entry_count}\n"
                f"Total hours: {format_hours(total_hours)}\n\n"
                "Please review the submitted timesheet in the admin dashboard."
            ),
        )

    # ------------------------------------------------------------------
    # Outbound email
    # ------------------------------------------------------------------

    @property
    def pending_emails(self) -> list[PendingEmail]:
        return list(self._outbox)

    def send_pending(self) -> int:
        """
        Deliver every queued email and return how many were accepted.
        Call only after the triggering transaction has committed. Never raises.
        """
        outbox, self._outbox = self._outbox, []
        sent = 0
        for email in outbox:
            try:
                self._email.send(email.to, email.subject, email.text)
                sent += 1
            except Exception:
                logger.error("Failed to deliver email '%s'", email.subject, exc_info=True)
        return sent

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def list_for_user(self, employee: Employee, limit: int = 10) -> list[Notification]:
        logger.info("Listing notifications for employee id=%s", employee.id)
        return self._repo.list_for_user(employee.user_id, limit=limit)

    def unread_count(self, employee: Employee) -> int:
        return self._repo.count_unread(employee.user_id)

    def mark_read(self, notification_id: int, employee: Employee) -> Notification:
        logger.info("Marking notification id=%s read", notification_id)
        if not self._repo.mark_read(notification_id, employee.user_id):
            logger.warning(
                "Notification id=%s not found for employee id=%s",
                notification_id,
                employee.id,
            )
            raise NotFoundError(f"Notification with id={notification_id} not found")
        return self._repo.get_by_id(notification_id)  # type: ignore[return-value]

    def mark_all_read(self, employee: Employee) -> int:
        logger.info("Marking all notifications read for employee id=%s", employee.id)
        return self._repo.mark_all_read(employee.user_id)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _queue_email(self, to: list[str], subject: str, text: str) -> None:
        if not self._email.enabled:
            logger.debug("Email delivery disabled; not queueing '%s'", subject)
            return
        self._outbox.append(PendingEmail(to=to, subject=subject, text=text))

    def _safely(self, what: str, deliver: Callable[[], object]) -> None:
        """
        Run *deliver*, logging and swallowing any failure.

        The store write runs inside a SAVEPOINT so a failed insert is rolled
        back on its own while the surrounding transaction still commits.
        """
        try:
            self._conn.execute(f"SAVEPOINT {_SAVEPOINT}")
            try:
                deliver()
            except Exception:
                self._conn.execute(f"ROLLBACK TO SAVEPOINT {_SAVEPOINT}")
                raise
            finally:
                self._conn.execute(f"RELEASE SAVEPOINT {_SAVEPOINT}")
        except Exception:
            logger.error("Failed to deliver %s notification", what, exc_info=True)
