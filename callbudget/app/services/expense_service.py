from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session

from callbudget.app.database import commit_or_raise
from callbudget.app.errors import NotFound, OwnershipMismatch, ValidationError
from callbudget.app.logger import get_logger
from callbudget.app.models.models import Budget, Expense
from callbudget.app.schemas.expenses import ExpenseForm, ExpenseStatusUpdate
from callbudget.app.services.budget_service import get_owned_budget
from callbudget.app.services.category_service import get_budget_category
from callbudget.app.services.receipt_storage import ReceiptStore, ReceiptUpload, StoredReceipt
from callbudget.app.services.startup_call_service import get_startup_call
from callbudget.app.services.user_service import resolve_acting_user
from callbudget.app.services.validation import validate_expense, validate_expense_status

logger = get_logger("expenses")

EDITABLE_FIELDS = ["title", "description", "amount", "currency", "date", "status", "category_id"]

def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if isinstance(value, str) and not value.strip():
        return None
    return value

def _check_route_budget(budget: Budget, payload_budget_id: Optional[str]) -> None:
    """A budget id in the body must agree with the budget addressed by the URL"""
    if payload_budget_id and payload_budget_id != budget.id:
        raise OwnershipMismatch(
            f"Expense budget_id {payload_budget_id} does not match budget {budget.id} in the URL"
        )

def _check_receipt_path(
    db: Session, store: ReceiptStore, path: Optional[str], expense_id: Optional[str] = None
) -> Optional[str]:
    """An attached path must name a stored file that no other expense holds"""
    path = _blank_to_none(path)
    if not path:
        return None
    if not path.startswith(store.url_prefix + "/"):
        raise ValidationError(f"Receipt path must point into {store.url_prefix}/")
    if not store.exists(path):
        raise ValidationError(f"Receipt {path} has not been uploaded")

    holder = db.query(Expense).filter(Expense.receipt == path)
    if expense_id:
        holder = holder.filter(Expense.id != expense_id)
    if holder.first():
        raise ValidationError(f"Receipt {path} is already attached to another expense")
    return path

def get_owned_expense(db: Session, startup_call_id: str, budget_id: str, expense_id: str) -> Expense:
    """Resolve call -> budget -> expense, failing on the first broken link"""
    budget = get_owned_budget(db, startup_call_id, budget_id)
    expense = db.query(Expense).filter(Expense.id == expense_id).first()
    if not expense:
        raise NotFound("Expense not found")
    if expense.budget_id != budget.id:
        raise OwnershipMismatch(f"Expense {expense_id} does not belong to budget {budget.id}")
    return expense

def list_expenses(
    db: Session,
    startup_call_id: str,
    budget_id: str,
    category_id: Optional[str] = None,
    status: Optional[str] = None
) -> List[Expense]:
    """Get the expenses of a budget, newest first by expense date"""
    budget = get_owned_budget(db, startup_call_id, budget_id)
    query = db.query(Expense).filter(Expense.budget_id == budget.id)

    if category_id:
        query = query.filter(Expense.category_id == category_id)
    if status:
        query = query.filter(Expense.status == validate_expense_status(status))

    return query.order_by(Expense.date.desc(), Expense.created_at.desc()).all()

def list_startup_call_expenses(
    db: Session,
    startup_call_id: str,
    category_id: Optional[str] = None,
    status: Optional[str] = None
) -> List[Expense]:
    """Get the expenses of every budget of a startup call, newest first"""
    get_startup_call(db, startup_call_id)
    query = db.query(Expense).join(Budget, Expense.budget_id == Budget.id).filter(
        Budget.startup_call_id == startup_call_id
    )

    if category_id:
        query = query.filter(Expense.category_id == category_id)
    if status:
        query = query.filter(Expense.status == validate_expense_status(status))

    return query.order_by(Expense.date.desc(), Expense.created_at.desc()).all()

def get_expense(db: Session, startup_call_id: str, budget_id: str, expense_id: str) -> Expense:
    return get_owned_expense(db, startup_call_id, budget_id, expense_id)

def create_expense(
    db: Session,
    store: ReceiptStore,
    startup_call_id: str,
    budget_id: str,
    form: ExpenseForm,
    receipt: Optional[ReceiptUpload] = None,
    session_user_id: Optional[str] = None
) -> Expense:
    """Create an expense, optionally storing its receipt in the same request.

    Everything is validated before the receipt is written, and the file is
    removed again if the row cannot be saved.
    """
    budget = get_owned_budget(db, startup_call_id, budget_id)
    data = form.provided_fields()
    _check_route_budget(budget, data.get("budget_id"))

    expense_data = validate_expense(data)
    category_id = _blank_to_none(expense_data.get("category_id"))
    if category_id:
        get_budget_category(db, budget, category_id)
    creator = resolve_acting_user(db, _blank_to_none(data.get("created_by")), session_user_id)
    receipt_path = _check_receipt_path(db, store, data.get("receipt_path"))
    if receipt is not None:
        store.check(receipt)

    stored: Optional[StoredReceipt] = store.upload(receipt) if receipt is not None else None

    expense = Expense(
        budget_id=budget.id,
        category_id=category_id,
        created_by=creator.id,
        title=expense_data["title"],
        description=_blank_to_none(expense_data.get("description")),
        amount=expense_data["amount"],
        currency=expense_data["currency"],
        date=expense_data["date"],
        status=expense_data["status"],
        receipt=stored.path if stored else receipt_path,
        receipt_name=stored.filename if stored else None
    )
    db.add(expense)
    try:
        commit_or_raise(db, "create expense")
    except Exception:
        if stored:
            store.remove(stored.path)
        raise
    db.refresh(expense)

    logger.info("Created expense %s in budget %s (%.2f %s) by %s",
                expense.id, budget.id, expense.amount, expense.currency, creator.id)
    return expense

def update_expense(
    db: Session,
    store: ReceiptStore,
    startup_call_id: str,
    budget_id: str,
    expense_id: str,
    form: ExpenseForm,
    receipt: Optional[ReceiptUpload] = None
) -> Expense:
    """Apply a partial update.

    The merged record goes through the same validation as a new expense. A
    new receipt replaces the old file; ``remove_receipt`` clears it.
    """
    expense = get_owned_expense(db, startup_call_id, budget_id, expense_id)
    data = form.provided_fields()
    _check_route_budget(expense.budget, data.get("budget_id"))

    merged: Dict[str, Any] = {field: getattr(expense, field) for field in EDITABLE_FIELDS}
    merged.update({field: data[field] for field in EDITABLE_FIELDS if field in data})
    expense_data = validate_expense(merged)

    category_id = _blank_to_none(expense_data.get("category_id"))
    if "category_id" in data and category_id:
        get_budget_category(db, expense.budget, category_id)
    receipt_path = _check_receipt_path(db, store, data.get("receipt_path"), expense.id)
    if receipt is not None:
        store.check(receipt)

    expense.title = expense_data["title"]
    expense.description = _blank_to_none(expense_data.get("description"))
    expense.amount = expense_data["amount"]
    expense.currency = expense_data["currency"]
    expense.date = expense_data["date"]
    expense.status = expense_data["status"]
    expense.category_id = category_id

    old_receipt = expense.receipt
    if receipt is not None:
        def persist(stored: StoredReceipt):
            expense.receipt = stored.path
            expense.receipt_name = stored.filename
            commit_or_raise(db, "update expense")

        store.replace(old_receipt, receipt, on_stored=persist)
    elif form.remove_receipt or receipt_path:
        expense.receipt = receipt_path
        expense.receipt_name = None
        commit_or_raise(db, "update expense")
        if old_receipt and old_receipt != receipt_path:
            store.remove(old_receipt)
    else:
        commit_or_raise(db, "update expense")

    db.refresh(expense)
    logger.info("Updated expense %s: %s", expense.id, ", ".join(sorted(data)) or "receipt only")
    return expense

def update_expense_status(
    db: Session, startup_call_id: str, budget_id: str, expense_id: str, status_update: ExpenseStatusUpdate
) -> Expense:
    """Change only the status and the reviewer's note"""
    expense = get_owned_expense(db, startup_call_id, budget_id, expense_id)
    status = validate_expense_status(status_update.status)

    previous = expense.status
    expense.status = status
    if status_update.note is not None:
        expense.review_note = status_update.note.strip() or None

    commit_or_raise(db, "update expense status")
    db.refresh(expense)
    logger.info("Expense %s status %s -> %s", expense.id, previous, status)
    return expense

def delete_expense(
    db: Session, store: ReceiptStore, startup_call_id: str, budget_id: str, expense_id: str
) -> Dict[str, bool]:
    """Delete an expense and its receipt file"""
    expense = get_owned_expense(db, startup_call_id, budget_id, expense_id)

    receipt_path = expense.receipt
    db.delete(expense)
    commit_or_raise(db, "delete expense")
    store.remove(receipt_path)

    logger.info("Deleted expense %s from budget %s", expense_id, budget_id)
    return {"success": True}
