from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from callbudget.app.database import get_db_session
from callbudget.app.schemas.expenses import ExpenseResponse
from callbudget.app.schemas.startup_calls import StartupCallCreate, StartupCallResponse
from callbudget.app.schemas.summaries import StartupCallSummary
from callbudget.app.services.aggregation_service import get_startup_call_summary
from callbudget.app.services.expense_service import list_startup_call_expenses
from callbudget.app.services.startup_call_service import create_startup_call, get_startup_call

router = APIRouter()

@router.post("", response_model=StartupCallResponse, status_code=201)
def create_startup_call_endpoint(
    call_data: StartupCallCreate,
    db: Session = Depends(get_db_session)
):
    """
    Create a startup call that budgets can be attached to
    """
    return create_startup_call(db, call_data)

@router.get("/{startup_call_id}", response_model=StartupCallResponse)
def get_startup_call_endpoint(
    startup_call_id: str,
    db: Session = Depends(get_db_session)
):
    return get_startup_call(db, startup_call_id)

@router.get("/{startup_call_id}/budget-summary", response_model=StartupCallSummary)
def get_startup_call_summary_endpoint(
    startup_call_id: str,
    db: Session = Depends(get_db_session)
):
    """
    Get spent/remaining totals across every budget of a startup call
    """
    return get_startup_call_summary(db, startup_call_id)

@router.get("/{startup_call_id}/expenses", response_model=List[ExpenseResponse])
def list_startup_call_expenses_endpoint(
    startup_call_id: str,
    category_id: Optional[str] = Query(None, description="Filter by category"),
    status: Optional[str] = Query(None, description="Filter by expense status"),
    db: Session = Depends(get_db_session)
):
    """
    Get the expenses of all budgets of a startup call, newest first
    """
    return list_startup_call_expenses(db, startup_call_id, category_id, status)
