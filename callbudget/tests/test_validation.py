import pytest
from datetime import date, datetime

from callbudget.app.errors import (
    InvalidAmount, InvalidDate, InvalidDateRange, InvalidStatus, MissingFields, ValidationError
)
from callbudget.app.services.validation import (
    validate_amount, validate_date, validate_date_range, validate_expense,
    validate_expense_status, validate_non_negative_amount, validate_required_fields, validate_task
)

# Amounts
@pytest.mark.parametrize("value", [
    0, -1, -0.01, "0", "-25", "", "   ", None, "abc", "12abc", "nan", True, 10**400, "1e400"
])
def test_validate_amount_rejects_non_positive_and_garbage(value):
    with pytest.raises(InvalidAmount):
        validate_amount(value)

@pytest.mark.parametrize("value, expected", [(1, 1.0), (0.01, 0.01), ("250", 250.0), (" 99.5 ", 99.5), (1000.0, 1000.0)])
def test_validate_amount_returns_number(value, expected):
    assert validate_amount(value) == expected

def test_non_negative_amount_allows_zero():
    assert validate_non_negative_amount("0") == 0.0
    with pytest.raises(InvalidAmount):
        validate_non_negative_amount(-5)

def test_invalid_amount_is_a_validation_error():
    with pytest.raises(ValidationError) as excinfo:
        validate_amount("-3")
    assert excinfo.value.status_code == 400
    assert excinfo.value.code == "invalid_amount"

# Dates
@pytest.mark.parametrize("value", [
    "2025-05-21", "2025/05/21", "21.05.2025", "05/21/2025",
    "2025-05-21T10:00:00Z", "2025-05-21T10:00:00.000+02:00",
    date(2025, 5, 21), datetime(2025, 5, 21, 23, 59)
])
def test_validate_date_normalizes(value):
    assert validate_date(value) == date(2025, 5, 21)

@pytest.mark.parametrize("value", [None, "", "not a date", "2025-13-01", "31/31/2025", 20250521])
def test_validate_date_rejects(value):
    with pytest.raises(InvalidDate):
        validate_date(value)

def test_validate_date_range():
    validate_date_range(date(2025, 1, 1), date(2025, 1, 1))
    validate_date_range(date(2025, 1, 1), date(2025, 2, 1))
    with pytest.raises(InvalidDateRange):
        validate_date_range(date(2025, 2, 1), date(2025, 1, 31))

# Required fields
def test_required_fields_lists_every_missing_key():
    with pytest.raises(MissingFields) as excinfo:
        validate_required_fields({"title": "  ", "amount": 0, "currency": None}, ["title", "amount", "currency", "date"])
    assert excinfo.value.missing_fields == ["title", "currency", "date"]
    assert excinfo.value.to_dict()["missing_fields"] == ["title", "currency", "date"]

def test_required_fields_passes_when_present():
    validate_required_fields({"name": "Travel", "allocated_amount": 0}, ["name", "allocated_amount"])

# Composite validators
def test_validate_expense_normalizes_payload():
    result = validate_expense({
        "title": " Flights ", "amount": "300", "currency": "eur", "date": "2025-03-02"
    })
    assert result["title"] == "Flights"
    assert result["amount"] == 300.0
    assert result["currency"] == "EUR"
    assert result["date"] == date(2025, 3, 2)
    assert result["status"] == "pending"

def test_validate_expense_checks_required_before_amount():
    with pytest.raises(MissingFields) as excinfo:
        validate_expense({"title": "Flights", "amount": "-1"})
    assert excinfo.value.missing_fields == ["currency", "date"]

def test_validate_expense_checks_amount_before_date():
    with pytest.raises(InvalidAmount):
        validate_expense({"title": "Flights", "amount": "-1", "currency": "USD", "date": "garbage"})

def test_validate_expense_rejects_unknown_status():
    with pytest.raises(InvalidStatus):
        validate_expense({"title": "Flights", "amount": 1, "currency": "USD", "date": "2025-03-02", "status": "paid"})

def test_validate_expense_status():
    assert validate_expense_status("approved") == "approved"
    with pytest.raises(InvalidStatus) as excinfo:
        validate_expense_status("APPROVED")
    assert excinfo.value.status_code == 400

def test_validate_task_defaults_start_date_to_today():
    result = validate_task(
        {"title": "Prototype", "description": "Build it", "due_date": "2025-06-30"},
        today=date(2025, 6, 1)
    )
    assert result["start_date"] == date(2025, 6, 1)
    assert result["due_date"] == date(2025, 6, 30)
    assert result["priority"] == "MEDIUM"
    assert result["status"] == "TODO"

def test_validate_task_due_before_start():
    with pytest.raises(InvalidDateRange):
        validate_task({
            "title": "Prototype", "description": "Build it",
            "start_date": "2025-07-01", "due_date": "2025-06-30"
        })

def test_validate_task_rejects_unknown_priority():
    with pytest.raises(InvalidStatus):
        validate_task(
            {"title": "Prototype", "description": "Build it", "due_date": "2025-06-30", "priority": "URGENT"},
            today=date(2025, 6, 1)
        )
