from pydantic import BaseModel
from typing import Any, Dict, Optional
from datetime import datetime, date

from callbudget.app.models.models import ExpenseStatus

class ExpenseForm(BaseModel):
    """Expense fields as submitted in a multipart form.

    Everything is optional at this layer: create requires the composite
    expense validation to pass, update only touches the fields that are set.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[str] = None
    currency: Optional[str] = None
    date: Optional[str] = None
    status: Optional[str] = None
    category_id: Optional[str] = None
    budget_id: Optional[str] = None
    created_by: Optional[str] = None
    receipt_path: Optional[str] = None
    remove_receipt: bool = False

    class Config:
        extra = "forbid"

    def provided_fields(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude={"remove_receipt"})

class ExpenseStatusUpdate(BaseModel):
    status: str
    note: Optional[str] = None

    class Config:
        extra = "forbid"

class ExpenseResponse(BaseModel):
    id: str
    budget_id: str
    category_id: Optional[str] = None
    created_by: Optional[str] = None
    title: str
    description: Optional[str] = None
    amount: float
    currency: str
    date: date
    status: ExpenseStatus
    review_note: Optional[str] = None
    receipt: Optional[str] = None
    receipt_name: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ReceiptUploadResponse(BaseModel):
    success: bool = True
    file_path: str
    file_name: str
    file_type: str
    size: int
