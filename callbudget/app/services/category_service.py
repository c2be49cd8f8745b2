from typing import Dict, List
from sqlalchemy.orm import Session

from callbudget.app.database import commit_or_raise
from callbudget.app.errors import NotFound, OwnershipMismatch
from callbudget.app.logger import get_logger
from callbudget.app.models.models import Budget, BudgetCategory, Expense
from callbudget.app.schemas.categories import CategoryCreate, CategoryUpdate
from callbudget.app.services.budget_service import get_owned_budget
from callbudget.app.services.validation import validate_non_negative_amount, validate_required_fields

logger = get_logger("categories")

CATEGORY_REQUIRED_FIELDS = ["name", "allocated_amount"]

def get_budget_category(db: Session, budget: Budget, category_id: str) -> BudgetCategory:
    """Load a category and check that it belongs to ``budget``"""
    category = db.query(BudgetCategory).filter(BudgetCategory.id == category_id).first()
    if not category:
        raise NotFound(f"Category with id {category_id} not found")
    if category.budget_id != budget.id:
        raise OwnershipMismatch(f"Category {category_id} does not belong to budget {budget.id}")
    return category

def list_categories(db: Session, startup_call_id: str, budget_id: str) -> List[BudgetCategory]:
    budget = get_owned_budget(db, startup_call_id, budget_id)
    return (
        db.query(BudgetCategory)
        .filter(BudgetCategory.budget_id == budget.id)
        .order_by(BudgetCategory.name)
        .all()
    )

def create_category(db: Session, startup_call_id: str, budget_id: str, category_data: CategoryCreate) -> BudgetCategory:
    """Create a category inside a budget.

    Allocations are advisory: they are not checked against the budget total
    or against each other.
    """
    budget = get_owned_budget(db, startup_call_id, budget_id)

    data = category_data.model_dump()
    validate_required_fields(data, CATEGORY_REQUIRED_FIELDS)
    allocated_amount = validate_non_negative_amount(data["allocated_amount"])

    category = BudgetCategory(
        budget_id=budget.id,
        name=data["name"].strip(),
        description=data.get("description"),
        allocated_amount=allocated_amount
    )
    db.add(category)
    commit_or_raise(db, "create budget category")
    db.refresh(category)

    logger.info("Created category %s in budget %s (%.2f allocated)", category.id, budget.id, allocated_amount)
    return category

def update_category(
    db: Session, startup_call_id: str, budget_id: str, category_id: str, category_update: CategoryUpdate
) -> BudgetCategory:
    budget = get_owned_budget(db, startup_call_id, budget_id)
    category = get_budget_category(db, budget, category_id)

    update_data = category_update.model_dump(exclude_unset=True)
    validate_required_fields(
        {key: update_data.get(key, getattr(category, key)) for key in CATEGORY_REQUIRED_FIELDS},
        CATEGORY_REQUIRED_FIELDS
    )
    if "allocated_amount" in update_data:
        update_data["allocated_amount"] = validate_non_negative_amount(update_data["allocated_amount"])
    if "name" in update_data:
        update_data["name"] = update_data["name"].strip()

    for key, value in update_data.items():
        setattr(category, key, value)

    commit_or_raise(db, "update budget category")
    db.refresh(category)
    logger.info("Updated category %s", category.id)
    return category

def delete_category(
    db: Session, startup_call_id: str, budget_id: str, category_id: str, detach_expenses: bool = False
) -> Dict[str, bool]:
    """Delete a category.

    Expenses are never deleted with it. They keep pointing at the removed
    category unless ``detach_expenses`` is set, in which case their
    ``category_id`` is cleared.
    """
    budget = get_owned_budget(db, startup_call_id, budget_id)
    category = get_budget_category(db, budget, category_id)

    detached = 0
    if detach_expenses:
        detached = (
            db.query(Expense)
            .filter(Expense.category_id == category.id)
            .update({Expense.category_id: None}, synchronize_session=False)
        )

    db.delete(category)
    commit_or_raise(db, "delete budget category")

    logger.info("Deleted category %s from budget %s (%d expenses detached)", category_id, budget.id, detached)
    return {"success": True}
