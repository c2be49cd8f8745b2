import io
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
from typing import Dict, List, Optional

from callbudget.app.api.v1.deps import get_receipt_store
from callbudget.app.database import get_db_session
from callbudget.app.schemas.budgets import BudgetCreate, BudgetDetail, BudgetInDB, BudgetUpdate
from callbudget.app.schemas.reports import ReportRequest
from callbudget.app.schemas.summaries import BudgetSummary, MonthlySummary
from callbudget.app.services.aggregation_service import get_budget_summary, get_monthly_summary
from callbudget.app.services.budget_service import (
    create_budget, delete_budget, get_budget, list_budgets, update_budget
)
from callbudget.app.services.receipt_storage import ReceiptStore
from callbudget.app.services.report_service import generate_report

router = APIRouter()

@router.get("", response_model=List[BudgetInDB])
def list_budgets_endpoint(
    startup_call_id: str,
    db: Session = Depends(get_db_session)
):
    """
    Get all budgets of a startup call, newest first
    """
    return list_budgets(db, startup_call_id)

@router.post("", response_model=BudgetInDB, status_code=201)
def create_budget_endpoint(
    startup_call_id: str,
    budget_data: BudgetCreate,
    db: Session = Depends(get_db_session)
):
    """
    Create a new budget for a startup call

    - title, total_amount and currency are required
    - fiscal_year defaults to the current year, status to draft
    """
    return create_budget(db, startup_call_id, budget_data)

@router.post("/report")
def generate_report_endpoint(
    startup_call_id: str,
    report_request: ReportRequest,
    db: Session = Depends(get_db_session)
):
    """
    Download a budget report as PDF, Excel or CSV

    - budget_id selects one budget; omit it for every budget of the call
    - timeframe shortcuts are resolved against today's date
    """
    content, media_type, filename = generate_report(db, startup_call_id, report_request)
    return StreamingResponse(
        io.BytesIO(content),
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )

@router.get("/{budget_id}", response_model=BudgetDetail)
def get_budget_endpoint(
    startup_call_id: str,
    budget_id: str,
    db: Session = Depends(get_db_session)
):
    return get_budget(db, startup_call_id, budget_id)

@router.put("/{budget_id}", response_model=BudgetInDB)
def update_budget_endpoint(
    startup_call_id: str,
    budget_id: str,
    budget_update: BudgetUpdate,
    db: Session = Depends(get_db_session)
):
    """
    Update an existing budget; omitted fields keep their values
    """
    return update_budget(db, startup_call_id, budget_id, budget_update)

@router.delete("/{budget_id}", response_model=Dict[str, bool])
def delete_budget_endpoint(
    startup_call_id: str,
    budget_id: str,
    db: Session = Depends(get_db_session),
    store: ReceiptStore = Depends(get_receipt_store)
):
    """
    Delete a budget with its categories, expenses and receipt files
    """
    return delete_budget(db, startup_call_id, budget_id, store)

@router.get("/{budget_id}/summary", response_model=BudgetSummary)
def get_budget_summary_endpoint(
    startup_call_id: str,
    budget_id: str,
    db: Session = Depends(get_db_session)
):
    """
    Get spent, remaining and percent used for a budget and each of its categories
    """
    return get_budget_summary(db, startup_call_id, budget_id)

@router.get("/{budget_id}/summary/monthly", response_model=MonthlySummary)
def get_monthly_summary_endpoint(
    startup_call_id: str,
    budget_id: str,
    year: Optional[int] = Query(None, description="Calendar year, defaults to the current one"),
    db: Session = Depends(get_db_session)
):
    return get_monthly_summary(db, startup_call_id, budget_id, year)
