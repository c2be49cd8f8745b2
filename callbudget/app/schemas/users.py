from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from callbudget.app.models.models import UserRole

class UserCreate(BaseModel):
    email: str
    display_name: Optional[str] = None
    role: UserRole = UserRole.ENTREPRENEUR

class UserResponse(BaseModel):
    id: str
    email: str
    display_name: Optional[str] = None
    role: UserRole
    created_at: datetime

    class Config:
        from_attributes = True
