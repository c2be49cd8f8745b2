"""Spend aggregation over budgets, categories and months.

The ``summarize_*`` functions are pure: they take model objects (or
anything with the same attributes) and return plain dicts. The
``get_*_summary`` functions load the rows for a route and feed them in.
"""
import calendar
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from callbudget.app.models.models import Budget, BudgetCategory, Expense
from callbudget.app.services.budget_service import get_owned_budget
from callbudget.app.services.startup_call_service import get_startup_call


def _round_money(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _percent(spent: float, allocated: float) -> int:
    if allocated <= 0:
        return 0
    ratio = Decimal(str(spent)) / Decimal(str(allocated)) * 100
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def summarize_spend(allocated: float, expenses: Iterable[Any]) -> Dict[str, Any]:
    """Spent/remaining/percent for an allocation.

    ``remaining`` goes negative on overrun; ``percent_display`` is clamped
    to 0..100 for progress bars while ``percent_spent`` is not.
    """
    expenses = list(expenses)
    spent = _round_money(sum(e.amount for e in expenses))
    allocated = float(allocated or 0)
    percent_spent = _percent(spent, allocated)
    return {
        "allocated": allocated,
        "spent": spent,
        "remaining": _round_money(allocated - spent),
        "percent_spent": percent_spent,
        "percent_display": max(0, min(100, percent_spent)),
        "over_budget": spent > allocated,
        "expense_count": len(expenses),
    }


def summarize_budget(budget: Any, expenses: Iterable[Any]) -> Dict[str, Any]:
    summary = summarize_spend(budget.total_amount, expenses)
    summary.update(budget_id=budget.id, title=budget.title, currency=budget.currency)
    return summary


def summarize_category(category: Any, expenses: Iterable[Any]) -> Dict[str, Any]:
    summary = summarize_spend(
        category.allocated_amount,
        [e for e in expenses if e.category_id == category.id]
    )
    summary.update(category_id=category.id, name=category.name)
    return summary


def summarize_budget_with_categories(
    budget: Any, categories: Sequence[Any], expenses: Sequence[Any]
) -> Dict[str, Any]:
    """Budget summary plus one entry per category.

    Expenses without a category, or pointing at a deleted one, are counted
    in ``uncategorized_spent``.
    """
    summary = summarize_budget(budget, expenses)
    summary["categories"] = [summarize_category(category, expenses) for category in categories]
    known = {category.id for category in categories}
    summary["uncategorized_spent"] = _round_money(
        sum(e.amount for e in expenses if e.category_id not in known)
    )
    return summary


def summarize_by_month(expenses: Iterable[Any], year: int) -> List[Dict[str, Any]]:
    """Twelve buckets (January first) of expense totals dated in ``year``"""
    totals = [Decimal("0")] * 12
    for expense in expenses:
        if expense.date is None or expense.date.year != year:
            continue
        totals[expense.date.month - 1] += Decimal(str(expense.amount))
    return [
        {"month": index + 1, "label": calendar.month_abbr[index + 1], "total": _round_money(float(total))}
        for index, total in enumerate(totals)
    ]


def summarize_startup_call(
    startup_call_id: str, budgets: Sequence[Any], expenses: Sequence[Any]
) -> Dict[str, Any]:
    """Totals across every budget of a startup call.

    Amounts are added as-is; budgets in different currencies are not converted.
    """
    by_budget: Dict[str, List[Any]] = {budget.id: [] for budget in budgets}
    for expense in expenses:
        if expense.budget_id in by_budget:
            by_budget[expense.budget_id].append(expense)

    summary = summarize_spend(sum(budget.total_amount for budget in budgets),
                              [e for items in by_budget.values() for e in items])
    summary.update(
        startup_call_id=startup_call_id,
        budget_count=len(budgets),
        budgets=[summarize_budget(budget, by_budget[budget.id]) for budget in budgets],
    )
    return summary


def get_budget_summary(db: Session, startup_call_id: str, budget_id: str) -> Dict[str, Any]:
    budget = get_owned_budget(db, startup_call_id, budget_id)
    categories = (
        db.query(BudgetCategory)
        .filter(BudgetCategory.budget_id == budget.id)
        .order_by(BudgetCategory.name)
        .all()
    )
    expenses = db.query(Expense).filter(Expense.budget_id == budget.id).all()
    return summarize_budget_with_categories(budget, categories, expenses)


def get_monthly_summary(
    db: Session, startup_call_id: str, budget_id: str, year: Optional[int] = None
) -> Dict[str, Any]:
    budget = get_owned_budget(db, startup_call_id, budget_id)
    year = year or date.today().year
    expenses = db.query(Expense).filter(Expense.budget_id == budget.id).all()
    months = summarize_by_month(expenses, year)
    return {
        "year": year,
        "budget_id": budget.id,
        "months": months,
        "total": _round_money(sum(month["total"] for month in months)),
    }


def get_startup_call_summary(db: Session, startup_call_id: str) -> Dict[str, Any]:
    get_startup_call(db, startup_call_id)
    budgets = (
        db.query(Budget)
        .filter(Budget.startup_call_id == startup_call_id)
        .order_by(Budget.created_at.desc())
        .all()
    )
    expenses = (
        db.query(Expense)
        .filter(Expense.budget_id.in_([budget.id for budget in budgets]))
        .all()
        if budgets else []
    )
    return summarize_startup_call(startup_call_id, budgets, expenses)
