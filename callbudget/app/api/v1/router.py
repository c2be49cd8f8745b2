from fastapi import APIRouter
from callbudget.app.api.v1 import users, startup_calls, budgets, categories, expenses, uploads

BUDGETS_PREFIX = "/startup-calls/{startup_call_id}/budgets"

api_router = APIRouter()
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(startup_calls.router, prefix="/startup-calls", tags=["startup-calls"])
api_router.include_router(budgets.router, prefix=BUDGETS_PREFIX, tags=["budgets"])
api_router.include_router(categories.router, prefix=BUDGETS_PREFIX + "/{budget_id}/categories", tags=["categories"])
api_router.include_router(expenses.router, prefix=BUDGETS_PREFIX + "/{budget_id}/expenses", tags=["expenses"])
api_router.include_router(uploads.router, prefix="/expenses", tags=["uploads"])
