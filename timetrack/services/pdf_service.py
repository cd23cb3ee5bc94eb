"""
PDF generation service for the budget utilization report.
"""
from datetime import date
from decimal import Decimal
from io import BytesIO
from typing import Optional
import logging

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

from timetrack.core.config import settings
from timetrack.schemas.budget import BudgetReport, BudgetStatus

logger = logging.getLogger(__name__)

STATUS_COLORS = {
    BudgetStatus.UNDER_BUDGET: colors.HexColor('#27ae60'),
    BudgetStatus.ON_TRACK: colors.HexColor('#f39c12'),
    BudgetStatus.OVER_BUDGET: colors.HexColor('#c0392b'),
}


def _money(amount: Decimal) -> str:
    return f"${amount:,.2f}"


def _hours(hours: Decimal) -> str:
    return f"{hours:.1f}"


class PDFService:
    """Service for generating PDF reports."""

    def generate_budget_report(
        self,
        report: BudgetReport,
        generated_on: Optional[date] = None,
    ) -> BytesIO:
        """
        Render the budget report as a landscape PDF.

        Args:
            report: Budget report as produced by BudgetService
            generated_on: Date printed under the title (defaults to today)

        Returns:
            BytesIO buffer containing the PDF
        """
        logger.info("Generating budget PDF report with %s lines", len(report.lines))

        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=landscape(letter),
            rightMargin=0.5 * inch,
            leftMargin=0.5 * inch,
            topMargin=0.5 * inch,
            bottomMargin=0.5 * inch,
        )

        elements = []

        styles = getSampleStyleSheet()
        title_style = styles['Heading1']
        subtitle_style = styles['Heading2']
        normal_style = styles['Normal']

        elements.append(Paragraph("Budget Utilization Report", title_style))
        elements.append(Spacer(1, 0.1 * inch))
        generated_on = generated_on or date.today()
        elements.append(
            Paragraph(f"{settings.APP_NAME} - generated {generated_on.isoformat()}", normal_style)
        )
        elements.append(Spacer(1, 0.3 * inch))

        if not report.lines:
            elements.append(Paragraph("No budget items found.", normal_style))
        else:
            table_data = [[
                'WBS Code', 'Project', 'Task', 'Subtask',
                'Budget', 'Hours', 'Spent', 'Utilization', 'Status',
            ]]
            for line in report.lines:
                table_data.append([
                    line.wbs_code,
                    line.project_name[:32],
                    line.task_description[:28],
                    (line.subtask_description or '-')[:28],
                    _money(line.budget_amount),
                    _hours(line.total_hours),
                    _money(line.total_cost),
                    f"{line.utilization_percent:.1f}%",
                    line.status.value,
                ])

            table = Table(table_data, repeatRows=1, hAlign='LEFT')
            table_style = TableStyle([
                ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#2c3e50')),
                ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
                ('ALIGN', (0, 0), (-1, 0), 'CENTER'),
                ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
                ('FONTSIZE', (0, 0), (-1, 0), 9),
                ('BOTTOMPADDING', (0, 0), (-1, 0), 8),

                ('BACKGROUND', (0, 1), (-1, -1), colors.white),
                ('TEXTCOLOR', (0, 1), (-1, -1), colors.black),
                ('ALIGN', (4, 1), (7, -1), 'RIGHT'),
                ('ALIGN', (8, 1), (8, -1), 'CENTER'),
                ('FONTNAME', (0, 1), (-1, -1), 'Helvetica'),
                ('FONTSIZE', (0, 1), (-1, -1), 8),
                ('BOTTOMPADDING', (0, 1), (-1, -1), 6),

                ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
            ])

            for i, line in enumerate(report.lines, start=1):
                if i % 2 == 0:
                    table_style.add('BACKGROUND', (0, i), (-1, i), colors.HexColor('#f7f9fb'))
                table_style.add('TEXTCOLOR', (8, i), (8, i), STATUS_COLORS[line.status])

            table.setStyle(table_style)
            elements.append(table)

        elements.append(Spacer(1, 0.3 * inch))
        elements.append(Paragraph("Summary", subtitle_style))
        elements.append(Spacer(1, 0.1 * inch))

        summary_data = [
            ['Metric', 'Value'],
            ['Budget Items', str(len(report.lines))],
            ['Total Budget', _money(report.total_budget)],
            ['Total Spent', _money(report.total_spent)],
            ['Overall Utilization', f"{report.overall_utilization:.1f}%"],
            ['Overall Status', report.overall_status.value],
        ]

        summary_table = Table(summary_data, colWidths=[3 * inch, 2 * inch])
        summary_style = TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#3498db')),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('ALIGN', (0, 0), (-1, 0), 'CENTER'),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, 0), 10),
            ('BOTTOMPADDING', (0, 0), (-1, 0), 12),

            ('BACKGROUND', (0, 1), (-1, -1), colors.white),
            ('TEXTCOLOR', (0, 1), (-1, -1), colors.black),
            ('ALIGN', (0, 1), (0, -1), 'LEFT'),
            ('ALIGN', (1, 1), (1, -1), 'RIGHT'),
            ('FONTNAME', (0, 1), (0, -1), 'Helvetica-Bold'),
            ('FONTNAME', (1, 1), (1, -1), 'Helvetica'),
            ('FONTSIZE', (0, 1), (-1, -1), 9),
            ('BOTTOMPADDING', (0, 1), (-1, -1), 8),

            ('TEXTCOLOR', (1, -1), (1, -1), STATUS_COLORS[report.overall_status]),
            ('BACKGROUND', (0, -1), (-1, -1), colors.HexColor('#e8f6f3')),
            ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),

            ('GRID', (0, 0), (-1, -1), 1, colors.grey),
        ])
        summary_table.setStyle(summary_style)
        elements.append(summary_table)

        doc.build(elements)
        buffer.seek(0)

        logger.info("Budget PDF report generated successfully")
        return buffer
