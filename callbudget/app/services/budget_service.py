from datetime import date
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session

from callbudget.app.database import commit_or_raise
from callbudget.app.errors import InvalidStatus, NotFound, OwnershipMismatch
from callbudget.app.logger import get_logger
from callbudget.app.models.models import Budget, BudgetCategory, BudgetStatus, Expense
from callbudget.app.schemas.budgets import BudgetCreate, BudgetUpdate
from callbudget.app.services.receipt_storage import ReceiptStore
from callbudget.app.services.startup_call_service import get_startup_call
from callbudget.app.services.validation import validate_amount, validate_required_fields

logger = get_logger("budgets")

BUDGET_REQUIRED_FIELDS = ["title", "total_amount", "currency"]

def _validate_budget_status(value: Optional[str]) -> str:
    allowed = [s.value for s in BudgetStatus]
    if value not in allowed:
        raise InvalidStatus(f"Invalid budget status. Must be one of: {', '.join(allowed)}")
    return value

def get_owned_budget(db: Session, startup_call_id: str, budget_id: str) -> Budget:
    """Load a budget and check that it belongs to the startup call in the route"""
    budget = db.query(Budget).filter(Budget.id == budget_id).first()
    if not budget:
        raise NotFound("Budget not found")
    if budget.startup_call_id != startup_call_id:
        raise OwnershipMismatch(f"Budget {budget_id} does not belong to startup call {startup_call_id}")
    return budget

def list_budgets(db: Session, startup_call_id: str) -> List[Budget]:
    """Get all budgets for a startup call, newest first"""
    get_startup_call(db, startup_call_id)
    return (
        db.query(Budget)
        .filter(Budget.startup_call_id == startup_call_id)
        .order_by(Budget.created_at.desc())
        .all()
    )

def create_budget(db: Session, startup_call_id: str, budget_data: BudgetCreate) -> Budget:
    """Create a budget for a startup call.

    Fiscal year defaults to the current year and status to draft.
    """
    get_startup_call(db, startup_call_id)

    data = budget_data.model_dump()
    validate_required_fields(data, BUDGET_REQUIRED_FIELDS)
    total_amount = validate_amount(data["total_amount"])
    status = _validate_budget_status(data.get("status") or BudgetStatus.DRAFT.value)

    db_budget = Budget(
        startup_call_id=startup_call_id,
        title=data["title"].strip(),
        description=data.get("description"),
        total_amount=total_amount,
        currency=data["currency"].strip().upper(),
        fiscal_year=data.get("fiscal_year") or str(date.today().year),
        status=status
    )
    db.add(db_budget)
    commit_or_raise(db, "create budget")
    db.refresh(db_budget)

    logger.info("Created budget %s for startup call %s (%.2f %s)",
                db_budget.id, startup_call_id, db_budget.total_amount, db_budget.currency)
    return db_budget

def get_budget(db: Session, startup_call_id: str, budget_id: str) -> Budget:
    return get_owned_budget(db, startup_call_id, budget_id)

def update_budget(db: Session, startup_call_id: str, budget_id: str, budget_update: BudgetUpdate) -> Budget:
    """Update the fields that were sent; the rest keep their values"""
    budget = get_owned_budget(db, startup_call_id, budget_id)
    update_data: Dict[str, Any] = budget_update.model_dump(exclude_unset=True)

    # Required fields may be changed but not blanked
    validate_required_fields(
        {key: update_data.get(key, getattr(budget, key)) for key in BUDGET_REQUIRED_FIELDS},
        BUDGET_REQUIRED_FIELDS
    )
    if "total_amount" in update_data:
        update_data["total_amount"] = validate_amount(update_data["total_amount"])
    if "status" in update_data:
        update_data["status"] = _validate_budget_status(update_data["status"])
    if update_data.get("currency"):
        update_data["currency"] = update_data["currency"].strip().upper()
    if "fiscal_year" in update_data and not update_data["fiscal_year"]:
        update_data.pop("fiscal_year")

    for key, value in update_data.items():
        setattr(budget, key, value)

    commit_or_raise(db, "update budget")
    db.refresh(budget)
    logger.info("Updated budget %s: %s", budget.id, ", ".join(sorted(update_data)) or "no changes")
    return budget

def delete_budget(db: Session, startup_call_id: str, budget_id: str, store: ReceiptStore) -> Dict[str, bool]:
    """Delete a budget together with its categories, expenses and their receipts"""
    budget = get_owned_budget(db, startup_call_id, budget_id)

    expenses = db.query(Expense).filter(Expense.budget_id == budget.id).all()
    receipts = [expense.receipt for expense in expenses if expense.receipt]

    for expense in expenses:
        db.delete(expense)
    db.query(BudgetCategory).filter(BudgetCategory.budget_id == budget.id).delete()
    db.delete(budget)
    commit_or_raise(db, "delete budget")

    # Files go only once the rows are gone
    for receipt in receipts:
        store.remove(receipt)

    logger.info("Deleted budget %s with %d expenses", budget_id, len(expenses))
    return {"success": True}
