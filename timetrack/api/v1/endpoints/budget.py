"""
Budget report endpoints (admin only):
  GET /budget/report      – Utilization of every WBS leaf
  GET /budget/report.pdf  – The same report as a PDF download
"""
from datetime import date

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from timetrack.core.dependencies import db_dependency, require_admin
from timetrack.models.employee import Employee
from timetrack.schemas.budget import BudgetReport
from timetrack.services.budget_service import BudgetService
from timetrack.services.pdf_service import PDFService

router = APIRouter(prefix="/budget", tags=["Budget"])


@router.get(
    "/report",
    response_model=BudgetReport,
    summary="Budget utilization report",
)
def budget_report(
    conn=Depends(db_dependency),
    current_employee: Employee = Depends(require_admin),
):
    """
    Approved hours × billing rate against each leaf's budget, highest
    utilization first.
    """
    return BudgetService(conn).budget_report(current_employee)


@router.get(
    "/report.pdf",
    response_class=StreamingResponse,
    summary="Download the budget utilization report as PDF",
)
def budget_report_pdf(
    conn=Depends(db_dependency),
    current_employee: Employee = Depends(require_admin),
):
    report = BudgetService(conn).budget_report(current_employee)
    today = date.today()
    pdf_buffer = PDFService().generate_budget_report(report, generated_on=today)

    return StreamingResponse(
        pdf_buffer,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f"attachment; filename=budget_report_{today.isoformat()}.pdf"
        },
    )
