import pytest
from uuid import uuid4

from callbudget.app.errors import InvalidAmount, MissingFields, NotFound, OwnershipMismatch
from callbudget.app.models.models import Budget, BudgetCategory, Expense
from callbudget.app.schemas.categories import CategoryCreate, CategoryUpdate
from callbudget.app.services.category_service import (
    create_category, delete_category, get_budget_category, list_categories, update_category
)

def test_create_category(db_session, test_budget):
    category = create_category(db_session, test_budget.startup_call_id, test_budget.id, CategoryCreate(
        name=" Travel ", allocated_amount="250"
    ))
    assert category.budget_id == test_budget.id
    assert category.name == "Travel"
    assert category.allocated_amount == 250.0

def test_create_category_zero_allocation_is_allowed(db_session, test_budget):
    category = create_category(db_session, test_budget.startup_call_id, test_budget.id, CategoryCreate(
        name="Misc", allocated_amount=0
    ))
    assert category.allocated_amount == 0.0

def test_allocations_may_exceed_budget_total(db_session, test_budget):
    """Allocations are advisory and never checked against the budget"""
    for name in ["Salaries", "Hardware"]:
        create_category(db_session, test_budget.startup_call_id, test_budget.id, CategoryCreate(
            name=name, allocated_amount=900
        ))
    assert db_session.query(BudgetCategory).count() == 2

def test_create_category_validation(db_session, test_budget):
    with pytest.raises(MissingFields) as excinfo:
        create_category(db_session, test_budget.startup_call_id, test_budget.id, CategoryCreate(name="Travel"))
    assert excinfo.value.missing_fields == ["allocated_amount"]

    with pytest.raises(InvalidAmount):
        create_category(db_session, test_budget.startup_call_id, test_budget.id, CategoryCreate(
            name="Travel", allocated_amount=-1
        ))

def test_create_category_missing_budget(db_session, test_startup_call):
    with pytest.raises(NotFound):
        create_category(db_session, test_startup_call.id, str(uuid4()), CategoryCreate(
            name="Travel", allocated_amount=10
        ))

def test_list_categories_sorted_by_name(db_session, test_budget):
    for name in ["Travel", "Equipment", "Marketing"]:
        db_session.add(BudgetCategory(budget_id=test_budget.id, name=name, allocated_amount=1))
    db_session.commit()

    names = [c.name for c in list_categories(db_session, test_budget.startup_call_id, test_budget.id)]
    assert names == ["Equipment", "Marketing", "Travel"]

def test_category_of_another_budget(db_session, test_budget, test_category):
    other = Budget(
        startup_call_id=test_budget.startup_call_id, title="Other", total_amount=10,
        currency="USD", fiscal_year="2025"
    )
    db_session.add(other)
    db_session.commit()

    with pytest.raises(OwnershipMismatch):
        get_budget_category(db_session, other, test_category.id)

def test_update_category(db_session, test_budget, test_category):
    updated = update_category(
        db_session, test_budget.startup_call_id, test_budget.id, test_category.id,
        CategoryUpdate(allocated_amount="550")
    )
    assert updated.allocated_amount == 550.0
    assert updated.name == "Marketing"

def test_delete_category_keeps_expenses_pointing_at_it(db_session, test_budget, test_category, make_expense):
    category_id = test_category.id
    expense = make_expense(category_id=category_id)

    assert delete_category(db_session, test_budget.startup_call_id, test_budget.id, category_id) == {"success": True}

    db_session.expire_all()
    assert db_session.query(BudgetCategory).count() == 0
    assert db_session.query(Expense).filter(Expense.id == expense.id).one().category_id == category_id

def test_delete_category_detaching_expenses(db_session, test_budget, test_category, make_expense):
    category_id = test_category.id
    expense = make_expense(category_id=category_id)

    delete_category(db_session, test_budget.startup_call_id, test_budget.id, category_id, detach_expenses=True)

    db_session.expire_all()
    assert db_session.query(Expense).filter(Expense.id == expense.id).one().category_id is None
