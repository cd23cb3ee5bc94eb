"""
Database seeder – creates a default admin employee on first startup.

⚠️  FOR DEVELOPMENT ONLY.
    Seeding runs only while SEED_DEV_DATA is true; disable it in production.

Default admin:
    user_id : dev-admin   (use it as the ``sub`` of a development token)
    email   : admin@dmfengineering.com
"""
import sqlite3
from typing import Optional
import logging

from timetrack.db.database import get_connection
from timetrack.models.employee import EmployeeRole
from timetrack.repositories.employee_repository import EmployeeRepository

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Seed data – change these values freely during development
# ---------------------------------------------------------------------------
ADMIN_USER_ID = "dev-admin"
ADMIN_EMAIL = "admin@dmfengineering.com"
ADMIN_NAME = "DMF Admin"


def seed_admin(conn: Optional[sqlite3.Connection] = None) -> None:
    """
    Insert the default admin employee if it does not already exist.
    Safe to call on every startup – it is a no-op when the admin is present.
    """
    own_conn = conn is None
    conn = conn or get_connection()
    try:
        repo = EmployeeRepository(conn)
        if repo.get_by_user_id(ADMIN_USER_ID) or repo.get_by_email(ADMIN_EMAIL):
            logger.info("Seeder: admin employee '%s' already exists – skipping.", ADMIN_EMAIL)
            return

        repo.create(
            user_id=ADMIN_USER_ID,
            name=ADMIN_NAME,
            email=ADMIN_EMAIL,
            role=EmployeeRole.ADMIN,
        )
        conn.commit()
        logger.info("Seeder: created default admin employee (email: %s).", ADMIN_EMAIL)
    finally:
        if own_conn:
            conn.close()
