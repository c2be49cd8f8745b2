from pydantic import BaseModel
from typing import List, Optional

class SpendSummary(BaseModel):
    allocated: float
    spent: float
    remaining: float
    percent_spent: int
    percent_display: int
    over_budget: bool
    expense_count: int

class CategorySummary(SpendSummary):
    category_id: str
    name: str

class BudgetSummary(SpendSummary):
    budget_id: str
    title: str
    currency: str
    categories: List[CategorySummary] = []
    uncategorized_spent: float = 0.0

class MonthlyTotal(BaseModel):
    month: int
    label: str
    total: float

class MonthlySummary(BaseModel):
    year: int
    budget_id: Optional[str] = None
    months: List[MonthlyTotal]
    total: float

class StartupCallSummary(SpendSummary):
    startup_call_id: str
    budget_count: int
    budgets: List[BudgetSummary] = []
