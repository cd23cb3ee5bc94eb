from datetime import date
from decimal import Decimal

import pytest

from timetrack.core.exceptions import PermissionDeniedError
from timetrack.schemas.budget import BudgetStatus
from timetrack.schemas.time_entry import TimeEntryReview
from timetrack.services.budget_service import (
    BudgetService,
    compute_utilization,
    utilization_status,
)

WORK_DAY = date(2024, 1, 15)


@pytest.mark.parametrize(
    "spent, expected",
    [
        ("0", BudgetStatus.UNDER_BUDGET),
        ("750", BudgetStatus.UNDER_BUDGET),
        ("751", BudgetStatus.ON_TRACK),
        ("900", BudgetStatus.ON_TRACK),
        ("901", BudgetStatus.OVER_BUDGET),
        ("1500", BudgetStatus.OVER_BUDGET),
    ],
)
def test_utilization_bands(spent, expected):
    percent = compute_utilization(Decimal(spent), Decimal("1000"))
    assert utilization_status(percent) == expected


def test_zero_budget_means_zero_utilization():
    percent = compute_utilization(Decimal("500"), Decimal("0"))

    assert percent == 0
    assert utilization_status(percent) == BudgetStatus.UNDER_BUDGET


def _approve_all(entries, admin, employee):
    entries.submit_timesheet(employee, WORK_DAY)
    for entry in entries.list_my_entries(employee):
        entries.review_entry(entry.id, admin, TimeEntryReview(status="approved"))


def test_budget_report_uses_approved_hours_and_billing_rates(
    conn, john, sarah, admin, entries, make_entry
):
    # john bills 85/h, sarah has no rate and falls back to the default 75/h
    make_entry(john, wbs_code="25002-02.1", hours="10")
    make_entry(sarah, wbs_code="25002-02.2", hours="20")
    make_entry(sarah, wbs_code="25002-02.2", hours="20")
    _approve_all(entries, admin, john)
    _approve_all(entries, admin, sarah)
    # submitted but not approved: not spend yet
    make_entry(john, wbs_code="25002-01.1", hours="8", entry_date=date(2024, 1, 16))
    entries.submit_timesheet(john, date(2024, 1, 16))

    report = BudgetService(conn).budget_report(admin)

    assert [line.wbs_code for line in report.lines[:2]] == ["25002-02.2", "25002-02.1"]
    top, second = report.lines[:2]
    assert top.total_hours == Decimal("40")
    assert top.total_cost == Decimal("3000.00")
    assert top.utilization_percent == Decimal("60.00")
    assert top.status == BudgetStatus.UNDER_BUDGET
    assert second.total_cost == Decimal("850.00")
    assert second.utilization_percent == Decimal("17.00")

    idle = report.lines[2:]
    assert all(line.total_cost == 0 for line in idle)
    assert [line.wbs_code for line in idle] == sorted(line.wbs_code for line in idle)
    assert len(report.lines) == 9

    assert report.total_budget == Decimal("118000.00")
    assert report.total_spent == Decimal("3850.00")
    assert report.overall_utilization == Decimal("3.26")
    assert report.overall_status == BudgetStatus.UNDER_BUDGET


def test_budget_report_flags_overrun(conn, sarah, admin, entries, make_entry):
    # 25002-03 has a 12000 budget: 8 x 24h x 75 = 14400
    for _ in range(8):
        make_entry(sarah, wbs_code="25002-03", hours="24")
    _approve_all(entries, admin, sarah)

    report = BudgetService(conn).budget_report(admin)

    line = report.lines[0]
    assert line.wbs_code == "25002-03"
    assert line.utilization_percent == Decimal("120.00")
    assert line.status == BudgetStatus.OVER_BUDGET


def test_budget_report_is_admin_only(conn, john):
    with pytest.raises(PermissionDeniedError):
        BudgetService(conn).budget_report(john)
