"""
Mock data seeder – creates sample employees and the WBS catalog of project
25002 for local development.

⚠️  FOR DEVELOPMENT ONLY.
    Seeding runs only while SEED_DEV_DATA is true; disable it in production.
"""
import sqlite3
from decimal import Decimal
from typing import Optional
import logging

from timetrack.db.database import get_connection
from timetrack.models.budget_item import BudgetItem
from timetrack.repositories.budget_item_repository import BudgetItemRepository
from timetrack.repositories.employee_repository import EmployeeRepository

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Mock data
# ---------------------------------------------------------------------------

PROJECT_NUMBER = 25002
PROJECT_NAME = "Arverne East – Building E & Building I"

MOCK_EMPLOYEES = [
    {"user_id": "dev-john", "name": "John Smith", "email": "john@dmfengineering.com", "rate": Decimal("85")},
    {"user_id": "dev-sarah", "name": "Sarah Johnson", "email": "sarah@dmfengineering.com", "rate": None},
]

# (wbs_code, contract, task_number, task_description, task_unit,
#  subtask_number, subtask_description, budget_amount)
MOCK_BUDGET_ITEMS = [
    ("25002-01.1", "Original", 1, "Construction Documents", "Building E", "1.1", "Schematic Design", 18000),
    ("25002-01.2", "Original", 1, "Construction Documents", "Building E", "1.2", "Design Development", 20000),
    ("25002-01.3", "Original", 1, "Construction Documents", "Building E", "1.3", "50% Construction Documents", 10000),
    ("25002-01.4", "Original", 1, "Construction Documents", "Building E", "1.4", "100% Construction Documents", 10000),
    ("25002-02.1", "Original", 2, "Permits & Approvals", "Building E", "2.1", "NYCDOB Builders Pavement Plan", 5000),
    ("25002-02.2", "Original", 2, "Permits & Approvals", "Building E", "2.2", "NYCDPR Street Tree Application", 5000),
    ("25002-03", "Original", 3, "Construction Administration", "Building E", None, None, 12000),
    ("25002-04.1", "CA1", 4, "Construction Documents", "Building I", "4.1", "Schematic Design", 18000),
    ("25002-04.2", "CA1", 4, "Construction Documents", "Building I", "4.2", "Design Development", 20000),
]


def mock_budget_items() -> list[BudgetItem]:
    """Build the sample catalog rows."""
    items = []
    for code, contract, task, task_desc, unit, subtask, subtask_desc, budget in MOCK_BUDGET_ITEMS:
        items.append(
            BudgetItem(
                wbs_code=code,
                project_number=PROJECT_NUMBER,
                project_name=PROJECT_NAME,
                contract=contract,
                task_number=task,
                task_description=task_desc,
                task_unit=unit,
                subtask_number=Decimal(subtask) if subtask is not None else None,
                subtask_description=subtask_desc,
                fee_structure="Lump Sum",
                budget_amount=Decimal(budget),
                dmf_budget_amount=Decimal(budget),
            )
        )
    return items


def seed_mock_data(conn: Optional[sqlite3.Connection] = None) -> None:
    """
    Insert the mock employees and catalog if they are not present yet.
    Catalog rows are upserted by WBS code, so re-running is harmless.
    """
    logger.info("Mock seeder: starting")
    own_conn = conn is None
    conn = conn or get_connection()
    try:
        employees = EmployeeRepository(conn)
        for data in MOCK_EMPLOYEES:
            if employees.get_by_user_id(data["user_id"]) or employees.get_by_email(data["email"]):
                logger.info("Mock seeder: Employee '%s' already exists", data["email"])
                continue
            employee = employees.create(
                user_id=data["user_id"],
                name=data["name"],
                email=data["email"],
                default_billing_rate=data["rate"],
            )
            logger.info("Mock seeder: Created employee '%s' (id=%s)", employee.name, employee.id)

        catalog = BudgetItemRepository(conn)
        items = mock_budget_items()
        for item in items:
            catalog.upsert(item)
        logger.info("Mock seeder: Upserted %s budget items", len(items))

        conn.commit()
        logger.info("Mock seeder: done")
    except Exception as e:
        conn.rollback()
        logger.error("Mock seeder failed: %s", e)
        raise
    finally:
        if own_conn:
            conn.close()
