from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class StartupCallCreate(BaseModel):
    title: str
    description: Optional[str] = None
    status: str = "open"

class StartupCallResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    status: str
    created_at: datetime

    class Config:
        from_attributes = True
