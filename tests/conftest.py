"""
Shared fixtures: an in-memory database seeded with the sample catalog and
employees, services wired to it, and an API client bound to the same
connection.
"""
from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from timetrack.core.dependencies import db_dependency
from timetrack.core.security import create_access_token
from timetrack.db.database import get_connection
from timetrack.db.mock_seeder import seed_mock_data
from timetrack.db.schema import apply_schema
from timetrack.db.seeder import ADMIN_USER_ID, seed_admin
from timetrack.main import create_app
from timetrack.repositories.employee_repository import EmployeeRepository
from timetrack.schemas.time_entry import TimeEntryCreate
from timetrack.services.notification_service import EmailClient, NotificationService
from timetrack.services.time_entry_service import TimeEntryService

WORK_DAY = date(2024, 1, 15)


@pytest.fixture
def conn():
    connection = get_connection(":memory:")
    apply_schema(connection)
    seed_admin(connection)
    seed_mock_data(connection)
    yield connection
    connection.close()


@pytest.fixture
def admin(conn):
    return EmployeeRepository(conn).get_by_user_id(ADMIN_USER_ID)


@pytest.fixture
def john(conn):
    return EmployeeRepository(conn).get_by_user_id("dev-john")


@pytest.fixture
def sarah(conn):
    return EmployeeRepository(conn).get_by_user_id("dev-sarah")


@pytest.fixture
def notifier(conn):
    return NotificationService(conn, email_client=EmailClient(api_key=""))


@pytest.fixture
def entries(conn, notifier):
    return TimeEntryService(conn, notifier=notifier)


@pytest.fixture
def make_entry(entries):
    """Create a draft entry for *employee* with sensible defaults."""
    def _make(employee, wbs_code="25002-01.1", hours="4", entry_date=WORK_DAY, description=None):
        return entries.create_entry(
            employee,
            TimeEntryCreate(
                wbs_code=wbs_code,
                entry_date=entry_date,
                hours=Decimal(hours),
                description=description,
            ),
        )
    return _make


@pytest.fixture
def client(conn):
    app = create_app()
    app.dependency_overrides[db_dependency] = lambda: conn
    return TestClient(app)


def bearer(user_id, **claims):
    return {"Authorization": f"Bearer {create_access_token(user_id, **claims)}"}


@pytest.fixture
def admin_headers():
    return bearer(ADMIN_USER_ID)


@pytest.fixture
def john_headers():
    return bearer("dev-john")


@pytest.fixture
def sarah_headers():
    return bearer("dev-sarah")


@pytest.fixture
def headers_for():
    return bearer
