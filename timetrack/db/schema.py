"""
SQL DDL statements for all application tables.
Tables are created in dependency order so foreign keys resolve correctly.

Migration helpers run ALTER TABLE only when a column does not yet exist,
making them safe to call on every startup (idempotent).
"""
import sqlite3
from typing import Optional

from timetrack.db.database import get_connection

# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

CREATE_EMPLOYEES_TABLE = """
CREATE TABLE IF NOT EXISTS employees (
    id                    INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id               TEXT    NOT NULL UNIQUE,
    name                  TEXT    NOT NULL,
    email                 TEXT    NOT NULL UNIQUE,
    role                  TEXT    NOT NULL DEFAULT 'employee'
                                  CHECK(role IN ('admin', 'employee')),
    active                INTEGER NOT NULL DEFAULT 1,
    default_billing_rate  REAL,
    created_at            TEXT    NOT NULL DEFAULT (datetime('now')),
    updated_at            TEXT    NOT NULL DEFAULT (datetime('now'))
);
"""

# One row per WBS leaf; subtask_number NULL marks a task-level bucket.
CREATE_BUDGET_ITEMS_TABLE = """
CREATE TABLE IF NOT EXISTS budget_items (
    wbs_code              TEXT    PRIMARY KEY,
    project_number        INTEGER NOT NULL,
    project_name          TEXT    NOT NULL,
    contract              TEXT,
    task_number           INTEGER NOT NULL,
    task_description      TEXT    NOT NULL,
    task_unit             TEXT,
    subtask_number        REAL,
    subtask_description   TEXT,
    fee_structure         TEXT,
    budget_amount         REAL    NOT NULL DEFAULT 0.0,
    dmf_budget_amount     REAL    NOT NULL DEFAULT 0.0
);
"""

CREATE_BUDGET_ITEMS_PATH_INDEX = """
CREATE INDEX IF NOT EXISTS ix_budget_items_path
    ON budget_items (project_number, task_number, subtask_number);
"""

CREATE_TIME_ENTRIES_TABLE = """
CREATE TABLE IF NOT EXISTS time_entries (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    employee_id   INTEGER NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
    wbs_code      TEXT    NOT NULL REFERENCES budget_items(wbs_code) ON DELETE RESTRICT,
    entry_date    TEXT    NOT NULL,
    hours         REAL    NOT NULL CHECK(hours > 0),
    description   TEXT,
    status        TEXT    NOT NULL DEFAULT 'draft'
                          CHECK(status IN ('draft', 'submitted', 'approved', 'rejected')),
    submitted_at  TEXT,
    reviewed_at   TEXT,
    reviewed_by   INTEGER REFERENCES employees(id) ON DELETE SET NULL,
    review_notes  TEXT,
    created_at    TEXT    NOT NULL DEFAULT (datetime('now')),
    updated_at    TEXT    NOT NULL DEFAULT (datetime('now'))
);
"""

CREATE_TIME_ENTRIES_EMPLOYEE_INDEX = """
CREATE INDEX IF NOT EXISTS ix_time_entries_employee_date
    ON time_entries (employee_id, entry_date);
"""

CREATE_NOTIFICATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS notifications (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id       TEXT    NOT NULL,
    title         TEXT    NOT NULL,
    message       TEXT    NOT NULL,
    type          TEXT    NOT NULL DEFAULT 'info'
                          CHECK(type IN ('info', 'success', 'warning', 'error')),
    read          INTEGER NOT NULL DEFAULT 0,
    related_id    TEXT,
    related_type  TEXT,
    created_at    TEXT    NOT NULL DEFAULT (datetime('now')),
    updated_at    TEXT    NOT NULL DEFAULT (datetime('now'))
);
"""

CREATE_SECURITY_AUDIT_LOG_TABLE = """
CREATE TABLE IF NOT EXISTS security_audit_log (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id       TEXT,
    action        TEXT    NOT NULL,
    table_name    TEXT    NOT NULL,
    record_id     TEXT,
    old_values    TEXT,
    new_values    TEXT,
    created_at    TEXT    NOT NULL DEFAULT (datetime('now'))
);
"""

CREATE_SECURITY_AUDIT_LOG_RECORD_INDEX = """
CREATE INDEX IF NOT EXISTS ix_security_audit_log_record
    ON security_audit_log (table_name, record_id);
"""

# ---------------------------------------------------------------------------
# Incremental migrations (idempotent – safe to run every startup)
# ---------------------------------------------------------------------------

MIGRATIONS = [
    ("employees", "default_billing_rate",
     "ALTER TABLE employees ADD COLUMN default_billing_rate REAL"),
    ("budget_items", "dmf_budget_amount",
     "ALTER TABLE budget_items ADD COLUMN dmf_budget_amount REAL NOT NULL DEFAULT 0.0"),
]

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

ALL_TABLES = [
    CREATE_EMPLOYEES_TABLE,
    CREATE_BUDGET_ITEMS_TABLE,
    CREATE_BUDGET_ITEMS_PATH_INDEX,
    CREATE_TIME_ENTRIES_TABLE,
    CREATE_TIME_ENTRIES_EMPLOYEE_INDEX,
    CREATE_NOTIFICATIONS_TABLE,
    CREATE_SECURITY_AUDIT_LOG_TABLE,
    CREATE_SECURITY_AUDIT_LOG_RECORD_INDEX,
]


def _column_exists(conn, table: str, column: str) -> bool:
    rows = conn.execute(f"PRAGMA table_info({table})").fetchall()
    return any(r["name"] == column for r in rows)


def apply_schema(conn: sqlite3.Connection) -> None:
    """Create all tables and run pending migrations on *conn* (no commit)."""
    cursor = conn.cursor()

    # 1. Create tables (IF NOT EXISTS – safe on every restart)
    for ddl in ALL_TABLES:
        cursor.execute(ddl)

    # 2. Run migrations only when the column is missing
    for table, column, alter_sql in MIGRATIONS:
        if not _column_exists(conn, table, column):
            cursor.execute(alter_sql)


def create_tables(conn: Optional[sqlite3.Connection] = None) -> None:
    """Create all tables and apply incremental migrations."""
    if conn is not None:
        apply_schema(conn)
        conn.commit()
        return

    conn = get_connection()
    try:
        apply_schema(conn)
        conn.commit()
    finally:
        conn.close()
