"""Budget report generation.

``build_report`` selects the budgets and the expenses inside the requested
period and aggregates them; the ``render_*`` functions turn that into CSV,
Excel or PDF bytes. Nothing is persisted.
"""
import csv
import io
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
from jinja2 import Environment, FileSystemLoader, select_autoescape
from sqlalchemy.orm import Session

from callbudget.app.errors import BudgetTrackingError, InvalidTimeframe
from callbudget.app.logger import get_logger
from callbudget.app.models.models import Budget, BudgetCategory, Expense, StartupCall
from callbudget.app.schemas.reports import ReportFormat, ReportRequest, ReportTimeframe
from callbudget.app.services.aggregation_service import (
    summarize_budget_with_categories, summarize_spend
)
from callbudget.app.services.budget_service import get_owned_budget
from callbudget.app.services.startup_call_service import get_startup_call
from callbudget.app.services.validation import validate_date, validate_date_range

logger = get_logger("reports")

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
RECENT_EXPENSES_IN_PDF = 10

MEDIA_TYPES = {
    ReportFormat.PDF: "application/pdf",
    ReportFormat.EXCEL: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ReportFormat.CSV: "text/csv",
}
EXTENSIONS = {ReportFormat.PDF: "pdf", ReportFormat.EXCEL: "xlsx", ReportFormat.CSV: "csv"}


class ReportRenderError(BudgetTrackingError):
    status_code = 500
    code = "report_render_error"


@dataclass
class BudgetSection:
    budget: Budget
    categories: List[BudgetCategory]
    expenses: List[Expense]  # newest first
    summary: Dict[str, Any]


@dataclass
class BudgetReport:
    startup_call: StartupCall
    generated_on: date
    timeframe: ReportTimeframe
    date_from: Optional[date]
    date_to: Optional[date]
    totals: Dict[str, Any]
    sections: List[BudgetSection] = field(default_factory=list)

    @property
    def period_label(self) -> str:
        if not self.date_from and not self.date_to:
            return "All time"
        start = self.date_from.strftime("%b %d, %Y") if self.date_from else "Start"
        end = self.date_to.strftime("%b %d, %Y") if self.date_to else "Present"
        return f"{start} to {end}"

    def expense_rows(self) -> List[Dict[str, Any]]:
        rows = []
        for section in self.sections:
            names = {category.id: category.name for category in section.categories}
            for expense in section.expenses:
                rows.append({
                    "Budget": section.budget.title,
                    "Date": expense.date.isoformat(),
                    "Title": expense.title,
                    "Category": names.get(expense.category_id, "Uncategorized"),
                    "Amount": expense.amount,
                    "Currency": expense.currency,
                    "Status": expense.status,
                    "Receipt": expense.receipt or "",
                })
        return rows


def resolve_timeframe(
    timeframe: Optional[ReportTimeframe],
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    today: Optional[date] = None
) -> Tuple[ReportTimeframe, Optional[date], Optional[date]]:
    """Turn a timeframe shortcut or an explicit range into concrete bounds.

    Without a timeframe, explicit dates mean ``custom`` and no dates mean
    ``all``. Explicit dates are ignored for the named shortcuts.
    """
    today = today or date.today()
    if timeframe is None:
        timeframe = ReportTimeframe.CUSTOM if (date_from or date_to) else ReportTimeframe.ALL

    if timeframe == ReportTimeframe.ALL:
        return timeframe, None, None
    if timeframe == ReportTimeframe.CURRENT_MONTH:
        start = today.replace(day=1)
        next_month = date(today.year + (today.month == 12), today.month % 12 + 1, 1)
        return timeframe, start, date.fromordinal(next_month.toordinal() - 1)
    if timeframe == ReportTimeframe.CURRENT_QUARTER:
        first_month = 3 * ((today.month - 1) // 3) + 1
        start = date(today.year, first_month, 1)
        if first_month == 10:
            end = date(today.year, 12, 31)
        else:
            end = date.fromordinal(date(today.year, first_month + 3, 1).toordinal() - 1)
        return timeframe, start, end
    if timeframe == ReportTimeframe.CURRENT_YEAR:
        return timeframe, date(today.year, 1, 1), date(today.year, 12, 31)

    if not date_from and not date_to:
        raise InvalidTimeframe("A custom timeframe needs date_from and/or date_to")
    start = validate_date(date_from) if date_from else None
    end = validate_date(date_to) if date_to else None
    if start and end:
        validate_date_range(start, end)
    return timeframe, start, end


def build_report(
    db: Session, startup_call_id: str, request: ReportRequest, today: Optional[date] = None
) -> BudgetReport:
    startup_call = get_startup_call(db, startup_call_id)
    timeframe, date_from, date_to = resolve_timeframe(
        request.timeframe, request.date_from, request.date_to, today
    )

    if request.budget_id:
        budgets = [get_owned_budget(db, startup_call_id, request.budget_id)]
    else:
        budgets = (
            db.query(Budget)
            .filter(Budget.startup_call_id == startup_call_id)
            .order_by(Budget.created_at.desc())
            .all()
        )

    sections = []
    for budget in budgets:
        query = db.query(Expense).filter(Expense.budget_id == budget.id)
        if date_from:
            query = query.filter(Expense.date >= date_from)
        if date_to:
            query = query.filter(Expense.date <= date_to)
        expenses = query.order_by(Expense.date.desc(), Expense.created_at.desc()).all()
        categories = (
            db.query(BudgetCategory)
            .filter(BudgetCategory.budget_id == budget.id)
            .order_by(BudgetCategory.name)
            .all()
        )
        sections.append(BudgetSection(
            budget=budget,
            categories=categories,
            expenses=expenses,
            summary=summarize_budget_with_categories(budget, categories, expenses),
        ))

    totals = summarize_spend(
        sum(section.budget.total_amount for section in sections),
        [expense for section in sections for expense in section.expenses],
    )
    return BudgetReport(
        startup_call=startup_call,
        generated_on=today or date.today(),
        timeframe=timeframe,
        date_from=date_from,
        date_to=date_to,
        totals=totals,
        sections=sections,
    )


def render_csv(report: BudgetReport) -> bytes:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["Budget", "Date", "Title", "Category", "Amount", "Currency", "Status", "Receipt"])
    for row in report.expense_rows():
        writer.writerow([
            row["Budget"], row["Date"], row["Title"], row["Category"],
            f"{row['Amount']:.2f}", row["Currency"], row["Status"], row["Receipt"],
        ])
    return output.getvalue().encode("utf-8-sig")


def render_excel(report: BudgetReport) -> bytes:
    summary = pd.DataFrame([
        {"Metric": "Startup call", "Value": report.startup_call.title},
        {"Metric": "Period", "Value": report.period_label},
        {"Metric": "Generated on", "Value": report.generated_on.isoformat()},
        {"Metric": "Total budget", "Value": report.totals["allocated"]},
        {"Metric": "Total expenses", "Value": report.totals["spent"]},
        {"Metric": "Remaining", "Value": report.totals["remaining"]},
        {"Metric": "Utilization %", "Value": report.totals["percent_spent"]},
    ])
    budgets = pd.DataFrame(
        [
            {
                "Budget": section.budget.title,
                "Fiscal year": section.budget.fiscal_year,
                "Status": section.budget.status,
                "Currency": section.budget.currency,
                "Total": section.summary["allocated"],
                "Spent": section.summary["spent"],
                "Remaining": section.summary["remaining"],
                "Utilization %": section.summary["percent_spent"],
            }
            for section in report.sections
        ],
        columns=["Budget", "Fiscal year", "Status", "Currency", "Total", "Spent", "Remaining", "Utilization %"],
    )
    categories = pd.DataFrame(
        [
            {
                "Budget": section.budget.title,
                "Category": item["name"],
                "Allocated": item["allocated"],
                "Spent": item["spent"],
                "Remaining": item["remaining"],
                "% Used": item["percent_spent"],
            }
            for section in report.sections
            for item in section.summary["categories"]
        ],
        columns=["Budget", "Category", "Allocated", "Spent", "Remaining", "% Used"],
    )
    expenses = pd.DataFrame(
        report.expense_rows(),
        columns=["Budget", "Date", "Title", "Category", "Amount", "Currency", "Status", "Receipt"],
    )

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="xlsxwriter") as writer:
        summary.to_excel(writer, index=False, sheet_name="Summary")
        budgets.to_excel(writer, index=False, sheet_name="Budgets")
        categories.to_excel(writer, index=False, sheet_name="Categories")
        expenses.to_excel(writer, index=False, sheet_name="Expenses")
    return output.getvalue()


def render_report_html(report: BudgetReport) -> str:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html"]),
    )
    template = env.get_template("budget_report.html")
    return template.render(report=report, recent_limit=RECENT_EXPENSES_IN_PDF)


def render_pdf(report: BudgetReport) -> bytes:
    try:
        from weasyprint import HTML
    except (ImportError, OSError) as exc:
        raise ReportRenderError(
            "PDF export requires WeasyPrint and its system libraries; install them or request excel/csv"
        ) from exc

    html = render_report_html(report)
    return HTML(string=html).write_pdf()


RENDERERS = {
    ReportFormat.PDF: render_pdf,
    ReportFormat.EXCEL: render_excel,
    ReportFormat.CSV: render_csv,
}


def generate_report(
    db: Session, startup_call_id: str, request: ReportRequest, today: Optional[date] = None
) -> Tuple[bytes, str, str]:
    """Build and render a report; returns (content, media type, filename)"""
    started = datetime.now()
    report = build_report(db, startup_call_id, request, today)
    content = RENDERERS[request.format](report)

    filename = f"budget_report_{report.generated_on.isoformat()}.{EXTENSIONS[request.format]}"
    logger.info(
        "Generated %s report for startup call %s: %d budgets, %d bytes in %.2fs",
        request.format.value, startup_call_id, len(report.sections), len(content),
        (datetime.now() - started).total_seconds(),
    )
    return content, MEDIA_TYPES[request.format], filename
