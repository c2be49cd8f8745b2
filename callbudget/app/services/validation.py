"""Validation helpers shared by every mutation endpoint.

Each validator either returns a normalized value or raises one of the
``ValidationError`` subclasses from ``callbudget.app.errors``. Composite
validators run the checks in a fixed order (required fields, amounts,
dates, date range) and stop at the first failure.
"""
import math
from datetime import date, datetime
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from callbudget.app.errors import (
    InvalidAmount, InvalidDate, InvalidDateRange, InvalidStatus, MissingFields
)
from callbudget.app.models.models import ExpenseStatus

EXPENSE_REQUIRED_FIELDS = ["title", "amount", "currency", "date"]
TASK_REQUIRED_FIELDS = ["title", "description", "due_date"]
TASK_PRIORITIES = ["HIGH", "MEDIUM", "LOW"]
TASK_STATUSES = ["TODO", "IN_PROGRESS", "BLOCKED", "COMPLETED"]

_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%d.%m.%Y", "%m/%d/%Y")


def _parse_amount(value: Union[str, int, float, None]) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidAmount("Amount is required")
    if isinstance(value, bool):
        raise InvalidAmount("Amount must be a number")

    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except (ValueError, OverflowError):
            raise InvalidAmount("Amount must be a valid number")
    elif isinstance(value, (int, float)):
        try:
            parsed = float(value)
        except OverflowError:
            raise InvalidAmount("Amount must be a valid number")
    else:
        raise InvalidAmount("Amount must be a number")

    if math.isnan(parsed) or math.isinf(parsed):
        raise InvalidAmount("Amount must be a valid number")
    return parsed


def validate_amount(value: Union[str, int, float, None]) -> float:
    """Parse a positive amount from a number or numeric string."""
    parsed = _parse_amount(value)
    if parsed <= 0:
        raise InvalidAmount("Amount must be greater than zero")
    return parsed


def validate_non_negative_amount(value: Union[str, int, float, None]) -> float:
    """Like ``validate_amount`` but zero is allowed (category allocations)."""
    parsed = _parse_amount(value)
    if parsed < 0:
        raise InvalidAmount("Amount cannot be negative")
    return parsed


def validate_date(value: Union[str, date, datetime, None]) -> date:
    """Parse a date-like value into a ``date``."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidDate("Date is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDate("Invalid date format")

    text = value.strip()
    try:
        # Accepts full ISO timestamps such as 2025-05-21T10:00:00Z as well
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise InvalidDate("Invalid date format")


def validate_date_range(start: date, end: date) -> None:
    if end < start:
        raise InvalidDateRange("End date cannot be before start date")


def validate_required_fields(data: Mapping[str, Any], required: Iterable[str]) -> None:
    """Raise ``MissingFields`` naming every key that is absent, None or blank."""
    missing = [
        field for field in required
        if data.get(field) is None or (isinstance(data.get(field), str) and data.get(field).strip() == "")
    ]
    if missing:
        raise MissingFields(missing)


def validate_expense_status(value: Optional[str]) -> str:
    allowed = [s.value for s in ExpenseStatus]
    if value not in allowed:
        raise InvalidStatus(f"Invalid status value. Must be one of: {', '.join(allowed)}")
    return value


def validate_expense(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate an expense payload and return it with normalized types.

    ``amount`` comes back as a float and ``date`` as a ``date``; a missing
    status defaults to pending.
    """
    validate_required_fields(data, EXPENSE_REQUIRED_FIELDS)
    amount = validate_amount(data["amount"])
    expense_date = validate_date(data["date"])

    normalized = dict(data)
    normalized["amount"] = amount
    normalized["date"] = expense_date
    normalized["title"] = str(data["title"]).strip()
    normalized["currency"] = str(data["currency"]).strip().upper()
    normalized["status"] = validate_expense_status(data.get("status") or ExpenseStatus.PENDING.value)
    return normalized


def validate_task(data: Mapping[str, Any], today: Optional[date] = None) -> Dict[str, Any]:
    """Validate a milestone task payload.

    The start date defaults to today; the due date may not precede it.
    """
    validate_required_fields(data, TASK_REQUIRED_FIELDS)
    due_date = validate_date(data["due_date"])
    start_date = today or date.today()
    if data.get("start_date"):
        start_date = validate_date(data["start_date"])
    validate_date_range(start_date, due_date)

    priority = data.get("priority") or "MEDIUM"
    if priority not in TASK_PRIORITIES:
        raise InvalidStatus(f"Invalid priority value. Must be one of: {', '.join(TASK_PRIORITIES)}")
    status = data.get("status") or "TODO"
    if status not in TASK_STATUSES:
        raise InvalidStatus(f"Invalid status value. Must be one of: {', '.join(TASK_STATUSES)}")

    normalized = dict(data)
    normalized.update(due_date=due_date, start_date=start_date, priority=priority, status=status)
    return normalized
