import mimetypes
from fastapi import APIRouter, Depends, File, UploadFile
from typing import Optional
from fastapi.responses import Response

from callbudget.app.api.v1.deps import get_receipt_store, read_upload
from callbudget.app.errors import MissingFields
from callbudget.app.schemas.expenses import ReceiptUploadResponse
from callbudget.app.services.receipt_storage import ReceiptStore

router = APIRouter()

# Mounted outside /api/v1 so stored receipt paths resolve as-is
public_router = APIRouter()

@router.post("/upload-receipt", response_model=ReceiptUploadResponse, status_code=201)
async def upload_receipt_endpoint(
    file: Optional[UploadFile] = File(None),
    store: ReceiptStore = Depends(get_receipt_store)
):
    """
    Store a receipt on its own; the returned file_path can be sent as
    receipt_path when creating or updating an expense
    """
    upload = await read_upload(file)
    if upload is None:
        raise MissingFields(["file"])
    stored = store.upload(upload)
    return ReceiptUploadResponse(
        file_path=stored.path,
        file_name=stored.filename,
        file_type=stored.content_type,
        size=stored.size
    )

@public_router.get("/uploads/{key}")
def get_receipt_endpoint(key: str, store: ReceiptStore = Depends(get_receipt_store)):
    data = store.read(f"{store.url_prefix}/{key}")
    media_type = mimetypes.guess_type(key)[0] or "application/octet-stream"
    return Response(content=data, media_type=media_type)
