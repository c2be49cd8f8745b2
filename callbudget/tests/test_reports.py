import csv
import io
import sys
import zipfile
import pytest
from datetime import date
from unittest.mock import patch
from uuid import uuid4

from callbudget.app.errors import InvalidDateRange, InvalidTimeframe, NotFound, OwnershipMismatch
from callbudget.app.models.models import Budget
from callbudget.app.schemas.reports import ReportFormat, ReportRequest, ReportTimeframe
from callbudget.app.services.report_service import (
    ReportRenderError, build_report, generate_report, render_csv, render_excel,
    render_pdf, render_report_html, resolve_timeframe
)

TODAY = date(2025, 5, 21)

# Timeframes
@pytest.mark.parametrize("timeframe, start, end", [
    (ReportTimeframe.CURRENT_MONTH, date(2025, 5, 1), date(2025, 5, 31)),
    (ReportTimeframe.CURRENT_QUARTER, date(2025, 4, 1), date(2025, 6, 30)),
    (ReportTimeframe.CURRENT_YEAR, date(2025, 1, 1), date(2025, 12, 31)),
    (ReportTimeframe.ALL, None, None),
])
def test_resolve_timeframe_shortcuts(timeframe, start, end):
    assert resolve_timeframe(timeframe, today=TODAY) == (timeframe, start, end)

def test_shortcuts_at_year_end():
    december = date(2025, 12, 15)
    assert resolve_timeframe(ReportTimeframe.CURRENT_MONTH, today=december)[1:] == (date(2025, 12, 1), date(2025, 12, 31))
    assert resolve_timeframe(ReportTimeframe.CURRENT_QUARTER, today=december)[1:] == (date(2025, 10, 1), date(2025, 12, 31))

def test_shortcut_ignores_explicit_dates():
    assert resolve_timeframe(ReportTimeframe.CURRENT_YEAR, "2020-01-01", "2020-02-01", today=TODAY)[1:] == (
        date(2025, 1, 1), date(2025, 12, 31)
    )

def test_explicit_dates_without_timeframe_mean_custom():
    assert resolve_timeframe(None, "2025-02-01", None, today=TODAY) == (ReportTimeframe.CUSTOM, date(2025, 2, 1), None)
    assert resolve_timeframe(None, today=TODAY) == (ReportTimeframe.ALL, None, None)

def test_custom_needs_dates():
    with pytest.raises(InvalidTimeframe):
        resolve_timeframe(ReportTimeframe.CUSTOM, today=TODAY)

def test_custom_range_is_checked():
    with pytest.raises(InvalidDateRange):
        resolve_timeframe(ReportTimeframe.CUSTOM, "2025-03-01", "2025-02-01", today=TODAY)

# Report building
@pytest.fixture
def report_data(db_session, test_budget, test_category, make_expense):
    second = Budget(
        startup_call_id=test_budget.startup_call_id, title="Hardware", total_amount=500.0,
        currency="USD", fiscal_year="2025"
    )
    db_session.add(second)
    db_session.commit()
    make_expense(amount=300.0, expense_date=date(2025, 5, 3), title="Ad campaign", category_id=test_category.id)
    make_expense(amount=250.0, expense_date=date(2025, 4, 20), title="Trade fair")
    make_expense(amount=75.0, expense_date=date(2024, 11, 2), title="Old laptop", budget=second)
    return test_budget, second

def test_build_report_all_budgets(db_session, report_data):
    budget, second = report_data
    report = build_report(db_session, budget.startup_call_id, ReportRequest(timeframe="all"), today=TODAY)

    assert {s.budget.title for s in report.sections} == {"Pilot Budget", "Hardware"}
    assert report.totals["allocated"] == 1500.0
    assert report.totals["spent"] == 625.0
    assert report.period_label == "All time"

def test_build_report_single_budget_in_timeframe(db_session, report_data):
    budget, _ = report_data
    report = build_report(db_session, budget.startup_call_id, ReportRequest(
        budget_id=budget.id, timeframe="current_month"
    ), today=TODAY)

    assert len(report.sections) == 1
    section = report.sections[0]
    assert [e.title for e in section.expenses] == ["Ad campaign"]
    assert section.summary["spent"] == 300.0
    assert section.summary["categories"][0]["spent"] == 300.0

def test_build_report_expenses_newest_first(db_session, report_data):
    budget, _ = report_data
    report = build_report(db_session, budget.startup_call_id, ReportRequest(budget_id=budget.id), today=TODAY)
    assert [e.title for e in report.sections[0].expenses] == ["Ad campaign", "Trade fair"]

def test_build_report_budget_of_another_call(db_session, report_data, other_startup_call):
    budget, _ = report_data
    with pytest.raises(OwnershipMismatch):
        build_report(db_session, other_startup_call.id, ReportRequest(budget_id=budget.id), today=TODAY)

def test_build_report_unknown_call(db_session):
    with pytest.raises(NotFound):
        build_report(db_session, str(uuid4()), ReportRequest(), today=TODAY)

# Rendering
def test_render_csv(db_session, report_data):
    budget, _ = report_data
    report = build_report(db_session, budget.startup_call_id, ReportRequest(budget_id=budget.id), today=TODAY)

    rows = list(csv.reader(io.StringIO(render_csv(report).decode("utf-8-sig"))))

    assert rows[0] == ["Budget", "Date", "Title", "Category", "Amount", "Currency", "Status", "Receipt"]
    assert rows[1] == ["Pilot Budget", "2025-05-03", "Ad campaign", "Marketing", "300.00", "USD", "pending", ""]
    assert rows[2][3] == "Uncategorized"

def test_render_excel_has_all_sheets(db_session, report_data):
    budget, _ = report_data
    report = build_report(db_session, budget.startup_call_id, ReportRequest(), today=TODAY)

    content = render_excel(report)

    with zipfile.ZipFile(io.BytesIO(content)) as workbook:
        workbook_xml = workbook.read("xl/workbook.xml").decode("utf-8")
    for sheet in ["Summary", "Budgets", "Categories", "Expenses"]:
        assert f'name="{sheet}"' in workbook_xml

def test_report_html_limits_recent_expenses(db_session, test_budget, make_expense):
    for day in range(1, 13):
        make_expense(amount=10.0, expense_date=date(2025, 5, day), title=f"Taxi {day:02d}")

    report = build_report(db_session, test_budget.startup_call_id, ReportRequest(), today=TODAY)
    html = render_report_html(report)

    assert "Pilot Budget" in html
    assert "Taxi 12" in html
    assert "Taxi 03" in html
    assert "Taxi 02" not in html
    assert "Taxi 01" not in html

def test_report_html_escapes_titles(db_session, test_budget, make_expense):
    make_expense(title="<script>alert(1)</script>")
    report = build_report(db_session, test_budget.startup_call_id, ReportRequest(), today=TODAY)
    assert "<script>" not in render_report_html(report)

def test_render_pdf_without_weasyprint(db_session, test_budget):
    report = build_report(db_session, test_budget.startup_call_id, ReportRequest(), today=TODAY)
    with patch.dict(sys.modules, {"weasyprint": None}):
        with pytest.raises(ReportRenderError) as excinfo:
            render_pdf(report)
    assert excinfo.value.status_code == 500

def test_generate_report_csv_filename(db_session, report_data):
    budget, _ = report_data
    content, media_type, filename = generate_report(
        db_session, budget.startup_call_id, ReportRequest(format=ReportFormat.CSV), today=TODAY
    )
    assert media_type == "text/csv"
    assert filename == "budget_report_2025-05-21.csv"
    assert b"Trade fair" in content

def test_generate_report_pdf_uses_renderer(db_session, report_data):
    budget, _ = report_data
    with patch.dict("callbudget.app.services.report_service.RENDERERS",
                    {ReportFormat.PDF: lambda report: b"%PDF-fake"}):
        content, media_type, filename = generate_report(
            db_session, budget.startup_call_id, ReportRequest(), today=TODAY
        )
    assert content == b"%PDF-fake"
    assert media_type == "application/pdf"
    assert filename == "budget_report_2025-05-21.pdf"
