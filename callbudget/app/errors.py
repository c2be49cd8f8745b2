"""Error taxonomy for the budget and expense services.

Every error is an ``HTTPException`` so services can raise it directly and
FastAPI maps it to a response; ``code`` is the machine-readable name sent
back alongside the message.
"""
from typing import Iterable, List, Optional

from fastapi import HTTPException


class BudgetTrackingError(HTTPException):
    status_code = 500
    code = "error"

    def __init__(self, detail: str):
        super().__init__(status_code=type(self).status_code, detail=detail)

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": self.detail}


class ValidationError(BudgetTrackingError):
    status_code = 400
    code = "validation_error"


class MissingFields(ValidationError):
    code = "missing_fields"

    def __init__(self, missing_fields: Iterable[str]):
        self.missing_fields: List[str] = list(missing_fields)
        super().__init__(f"Missing required fields: {', '.join(self.missing_fields)}")

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["missing_fields"] = self.missing_fields
        return body


class InvalidAmount(ValidationError):
    code = "invalid_amount"


class InvalidDate(ValidationError):
    code = "invalid_date"


class InvalidDateRange(ValidationError):
    code = "invalid_date_range"


class InvalidUser(ValidationError):
    code = "invalid_user"


class InvalidTimeframe(ValidationError):
    code = "invalid_timeframe"


class DuplicateEmail(ValidationError):
    code = "duplicate_email"


class InvalidStatus(BudgetTrackingError):
    status_code = 400
    code = "invalid_status"


class NotFound(BudgetTrackingError):
    status_code = 404
    code = "not_found"


class OwnershipMismatch(BudgetTrackingError):
    status_code = 400
    code = "ownership_mismatch"


class UnsupportedFileType(BudgetTrackingError):
    status_code = 415
    code = "unsupported_file_type"


class FileTooLarge(BudgetTrackingError):
    status_code = 413
    code = "file_too_large"


class StorageFailure(BudgetTrackingError):
    status_code = 500
    code = "storage_failure"

    def __init__(self, detail: str, original: Optional[BaseException] = None):
        self.original = original
        super().__init__(detail)
