from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session
from typing import Dict, List, Optional

from callbudget.app.api.v1.deps import (
    RequestContext, expense_form, get_receipt_store, get_request_context, read_upload
)
from callbudget.app.database import get_db_session
from callbudget.app.schemas.expenses import ExpenseForm, ExpenseResponse, ExpenseStatusUpdate
from callbudget.app.services.expense_service import (
    create_expense, delete_expense, get_expense, list_expenses,
    update_expense, update_expense_status
)
from callbudget.app.services.receipt_storage import ReceiptStore

router = APIRouter()

@router.get("", response_model=List[ExpenseResponse])
def list_expenses_endpoint(
    startup_call_id: str,
    budget_id: str,
    category_id: Optional[str] = Query(None, description="Filter by category"),
    status: Optional[str] = Query(None, description="Filter by expense status"),
    db: Session = Depends(get_db_session)
):
    """
    Get the expenses of a budget, newest first
    """
    return list_expenses(db, startup_call_id, budget_id, category_id, status)

@router.post("", response_model=ExpenseResponse, status_code=201)
async def create_expense_endpoint(
    startup_call_id: str,
    budget_id: str,
    form: ExpenseForm = Depends(expense_form),
    receipt: Optional[UploadFile] = File(None),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db_session),
    store: ReceiptStore = Depends(get_receipt_store)
):
    """
    Create an expense from a multipart form.

    - title, amount, currency and date are required
    - created_by overrides the signed-in user
    - an optional receipt file is stored with the expense
    """
    upload = await read_upload(receipt)
    return create_expense(
        db, store, startup_call_id, budget_id, form,
        receipt=upload, session_user_id=context.user_id
    )

@router.get("/{expense_id}", response_model=ExpenseResponse)
def get_expense_endpoint(
    startup_call_id: str,
    budget_id: str,
    expense_id: str,
    db: Session = Depends(get_db_session)
):
    return get_expense(db, startup_call_id, budget_id, expense_id)

@router.put("/{expense_id}", response_model=ExpenseResponse)
async def update_expense_endpoint(
    startup_call_id: str,
    budget_id: str,
    expense_id: str,
    form: ExpenseForm = Depends(expense_form),
    receipt: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db_session),
    store: ReceiptStore = Depends(get_receipt_store)
):
    """
    Update an expense from a multipart form.

    - only submitted fields change
    - a new receipt replaces the old file
    - remove_receipt=true clears the receipt and deletes its file
    """
    upload = await read_upload(receipt)
    return update_expense(db, store, startup_call_id, budget_id, expense_id, form, receipt=upload)

@router.patch("/{expense_id}/status", response_model=ExpenseResponse)
def update_expense_status_endpoint(
    startup_call_id: str,
    budget_id: str,
    expense_id: str,
    status_update: ExpenseStatusUpdate,
    db: Session = Depends(get_db_session)
):
    """
    Approve, reject or otherwise re-status an expense, with an optional note
    """
    return update_expense_status(db, startup_call_id, budget_id, expense_id, status_update)

@router.delete("/{expense_id}", response_model=Dict[str, bool])
def delete_expense_endpoint(
    startup_call_id: str,
    budget_id: str,
    expense_id: str,
    db: Session = Depends(get_db_session),
    store: ReceiptStore = Depends(get_receipt_store)
):
    """
    Delete an expense and its receipt file
    """
    return delete_expense(db, store, startup_call_id, budget_id, expense_id)
