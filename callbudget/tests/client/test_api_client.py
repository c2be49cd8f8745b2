import pytest
import requests
from unittest.mock import MagicMock

from callbudget.client.api_client import ApiError, BudgetApiClient
from callbudget.client.dashboard import format_budget_overview, format_monthly, progress_bar
from callbudget.client.retry import RetryPolicy

def response(status_code, payload=None, headers=None, content=None):
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status_code
    resp.json.return_value = payload
    resp.content = content if content is not None else (b"{}" if payload is not None else b"")
    resp.text = str(payload)
    resp.headers = headers or {}
    return resp

@pytest.fixture
def session():
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    return session

@pytest.fixture
def api(session):
    return BudgetApiClient(
        "http://api.test/api/v1/",
        user_id="user-1",
        role="entrepreneur",
        retry_policy=RetryPolicy(max_attempts=3, sleep=lambda _: None),
        session=session
    )

def test_identity_headers_are_set(api, session):
    assert session.headers == {"X-User-Id": "user-1", "X-User-Role": "entrepreneur"}

def test_reads_are_retried(api, session):
    session.get.side_effect = [requests.ConnectionError("down"), response(200, [{"id": "b1"}])]

    assert api.list_budgets("call-1") == [{"id": "b1"}]
    assert session.get.call_count == 2
    url = session.get.call_args[0][0]
    assert url == "http://api.test/api/v1/startup-calls/call-1/budgets"

def test_list_expenses_sends_only_given_filters(api, session):
    session.get.return_value = response(200, [])

    api.list_expenses("call-1", "b1", status="approved")

    assert session.get.call_args[1]["params"] == {"status": "approved"}

def test_writes_are_not_retried(api, session):
    session.request.side_effect = requests.ConnectionError("down")

    with pytest.raises(requests.ConnectionError):
        api.create_budget("call-1", {"title": "Pilot", "total_amount": 1000, "currency": "USD"})
    assert session.request.call_count == 1

def test_write_5xx_is_not_retried(api, session):
    session.request.return_value = response(500, {"error": "storage_failure", "detail": "Failed to create budget"})

    with pytest.raises(ApiError) as excinfo:
        api.create_budget("call-1", {"title": "Pilot"})
    assert session.request.call_count == 1
    assert excinfo.value.status_code == 500
    assert excinfo.value.code == "storage_failure"

def test_error_payload_is_exposed(api, session):
    session.get.return_value = response(404, {"error": "not_found", "detail": "Budget not found"})

    with pytest.raises(ApiError) as excinfo:
        api.get_budget("call-1", "missing")
    assert excinfo.value.code == "not_found"
    assert "Budget not found" in str(excinfo.value)

def test_create_expense_sends_form_fields(api, session):
    session.request.return_value = response(201, {"id": "e1"})

    api.create_expense("call-1", "b1", {"title": "Taxi", "amount": 42, "description": None})

    method, url = session.request.call_args[0]
    assert method == "post"
    assert url.endswith("/startup-calls/call-1/budgets/b1/expenses")
    assert session.request.call_args[1]["data"] == {"title": "Taxi", "amount": "42"}

def test_download_report_uses_server_filename(api, session):
    session.post.return_value = response(
        200, headers={"Content-Disposition": 'attachment; filename="budget_report_2025-05-21.xlsx"'},
        content=b"PK\x03\x04"
    )

    content, filename = api.download_report("call-1", {"format": "excel"})

    assert content == b"PK\x03\x04"
    assert filename == "budget_report_2025-05-21.xlsx"

# Dashboard rendering
def test_progress_bar_is_clamped():
    assert progress_bar(50, width=10) == "[#####-----]"
    assert progress_bar(180, width=4) == "[####]"

def test_budget_overview_lines():
    summary = {
        "title": "Pilot", "currency": "USD", "allocated": 1000.0, "spent": 550.0, "remaining": 450.0,
        "percent_spent": 55, "over_budget": False, "uncategorized_spent": 250.0,
        "categories": [{
            "name": "Marketing", "allocated": 200.0, "spent": 300.0, "remaining": -100.0,
            "percent_spent": 150, "over_budget": True
        }]
    }

    lines = format_budget_overview(summary)

    assert lines[0].startswith("Pilot")
    assert "55%" in lines[0]
    assert "450.00 USD" in lines[0]
    assert lines[1].endswith("OVER BUDGET")
    assert "Uncategorized" in lines[2]

def test_monthly_lines():
    monthly = {"months": [{"month": m, "label": f"M{m}", "total": 10.0 if m == 3 else 0.0} for m in range(1, 13)],
               "total": 10.0}
    lines = format_monthly(monthly)
    assert len(lines) == 13
    assert lines[-1].startswith("Total")
