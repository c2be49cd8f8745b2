from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

class ReportTimeframe(str, Enum):
    CURRENT_MONTH = "current_month"
    CURRENT_QUARTER = "current_quarter"
    CURRENT_YEAR = "current_year"
    ALL = "all"
    CUSTOM = "custom"

class ReportFormat(str, Enum):
    PDF = "pdf"
    EXCEL = "excel"
    CSV = "csv"

class ReportRequest(BaseModel):
    # Accepts both budget_id and budgetId style keys
    budget_id: Optional[str] = Field(None, alias="budgetId")  # None selects every budget of the call
    date_from: Optional[str] = Field(None, alias="dateFrom")
    date_to: Optional[str] = Field(None, alias="dateTo")
    timeframe: Optional[ReportTimeframe] = None
    format: ReportFormat = ReportFormat.PDF

    class Config:
        extra = "forbid"
        populate_by_name = True
