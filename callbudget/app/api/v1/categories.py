from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Dict, List

from callbudget.app.database import get_db_session
from callbudget.app.schemas.categories import CategoryCreate, CategoryResponse, CategoryUpdate
from callbudget.app.services.category_service import (
    create_category, delete_category, list_categories, update_category
)

router = APIRouter()

@router.get("", response_model=List[CategoryResponse])
def list_categories_endpoint(
    startup_call_id: str,
    budget_id: str,
    db: Session = Depends(get_db_session)
):
    return list_categories(db, startup_call_id, budget_id)

@router.post("", response_model=CategoryResponse, status_code=201)
def create_category_endpoint(
    startup_call_id: str,
    budget_id: str,
    category_data: CategoryCreate,
    db: Session = Depends(get_db_session)
):
    """
    Create a category inside a budget; name and allocated_amount are required
    """
    return create_category(db, startup_call_id, budget_id, category_data)

@router.put("/{category_id}", response_model=CategoryResponse)
def update_category_endpoint(
    startup_call_id: str,
    budget_id: str,
    category_id: str,
    category_update: CategoryUpdate,
    db: Session = Depends(get_db_session)
):
    return update_category(db, startup_call_id, budget_id, category_id, category_update)

@router.delete("/{category_id}", response_model=Dict[str, bool])
def delete_category_endpoint(
    startup_call_id: str,
    budget_id: str,
    category_id: str,
    detach_expenses: bool = Query(False, description="Clear category_id on the category's expenses"),
    db: Session = Depends(get_db_session)
):
    """
    Delete a category. Its expenses are kept.
    """
    return delete_category(db, startup_call_id, budget_id, category_id, detach_expenses)
