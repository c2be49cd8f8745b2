from typing import List, Optional, Union
from datetime import datetime
from pydantic import BaseModel

from callbudget.app.models.models import BudgetStatus
from callbudget.app.schemas.categories import CategoryResponse

# Amounts stay loose here; the services validate them so callers get
# InvalidAmount / MissingFields instead of a generic 422.
AmountInput = Optional[Union[float, str]]

class BudgetCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    total_amount: AmountInput = None
    currency: Optional[str] = None
    fiscal_year: Optional[str] = None
    status: Optional[str] = None

    class Config:
        extra = "forbid"

class BudgetUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    total_amount: AmountInput = None
    currency: Optional[str] = None
    fiscal_year: Optional[str] = None
    status: Optional[str] = None

    class Config:
        extra = "forbid"

class BudgetInDB(BaseModel):
    id: str
    startup_call_id: str
    title: str
    description: Optional[str] = None
    total_amount: float
    currency: str
    fiscal_year: str
    status: BudgetStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class BudgetDetail(BudgetInDB):
    categories: List[CategoryResponse] = []
