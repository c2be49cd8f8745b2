from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Form, Header, UploadFile

from callbudget.app.config import Settings, get_settings
from callbudget.app.schemas.expenses import ExpenseForm
from callbudget.app.services.receipt_storage import ReceiptStore, ReceiptUpload

@dataclass
class RequestContext:
    """Identity resolved by the auth layer in front of the API"""
    user_id: Optional[str] = None
    role: Optional[str] = None

def get_request_context(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None)
) -> RequestContext:
    return RequestContext(user_id=x_user_id or None, role=x_user_role or None)

def get_receipt_store(settings: Settings = Depends(get_settings)) -> ReceiptStore:
    return ReceiptStore.from_settings(settings)

def expense_form(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    amount: Optional[str] = Form(None),
    currency: Optional[str] = Form(None),
    date: Optional[str] = Form(None),
    status: Optional[str] = Form(None),
    category_id: Optional[str] = Form(None),
    form_budget_id: Optional[str] = Form(None, alias="budget_id"),
    created_by: Optional[str] = Form(None),
    receipt_path: Optional[str] = Form(None),
    remove_receipt: bool = Form(False)
) -> ExpenseForm:
    """Collect the multipart expense fields; only submitted ones count as set"""
    submitted = {
        "title": title,
        "description": description,
        "amount": amount,
        "currency": currency,
        "date": date,
        "status": status,
        "category_id": category_id,
        "budget_id": form_budget_id,
        "created_by": created_by,
        "receipt_path": receipt_path,
    }
    return ExpenseForm(
        remove_receipt=remove_receipt,
        **{key: value for key, value in submitted.items() if value is not None}
    )

async def read_upload(file: Optional[UploadFile]) -> Optional[ReceiptUpload]:
    """Read a multipart file part; an empty file field counts as no file"""
    if file is None or not file.filename:
        return None
    data = await file.read()
    return ReceiptUpload(
        filename=file.filename,
        content_type=file.content_type or "application/octet-stream",
        data=data
    )
