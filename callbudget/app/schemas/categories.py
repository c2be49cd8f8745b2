from pydantic import BaseModel
from typing import Optional, Union
from datetime import datetime

class CategoryCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    allocated_amount: Optional[Union[float, str]] = None

    class Config:
        extra = "forbid"

class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    allocated_amount: Optional[Union[float, str]] = None

    class Config:
        extra = "forbid"

class CategoryResponse(BaseModel):
    id: str
    budget_id: str
    name: str
    description: Optional[str] = None
    allocated_amount: float
    created_at: datetime

    class Config:
        from_attributes = True
