from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from callbudget.app.api.v1.router import api_router
from callbudget.app.api.v1.uploads import public_router
from callbudget.app.config import get_settings
from callbudget.app.database import create_tables
from callbudget.app.errors import BudgetTrackingError, StorageFailure
from callbudget.app.logger import get_logger, setup_logging

setup_logging(get_settings())
logger = get_logger("main")

@asynccontextmanager
async def lifespan(app: FastAPI):
    create_tables()
    logger.info("Starting up application (%s)", get_settings().environment)
    yield
    logger.info("Shutting down application")

app = FastAPI(title="callbudget", lifespan=lifespan)

# Include all API routes
app.include_router(api_router, prefix="/api/v1")
app.include_router(public_router, tags=["uploads"])

@app.exception_handler(BudgetTrackingError)
async def budget_tracking_error_handler(request: Request, exc: BudgetTrackingError):
    body = exc.to_dict()
    if isinstance(exc, StorageFailure):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail,
                     exc_info=exc.original or exc)
        if get_settings().debug and exc.original is not None:
            body["debug"] = str(exc.original)
    return JSONResponse(status_code=exc.status_code, content=body)

@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("%s %s hit a database error", request.method, request.url.path, exc_info=exc)
    body = {"error": StorageFailure.code, "detail": "A database error occurred"}
    if get_settings().debug:
        body["debug"] = str(exc)
    return JSONResponse(status_code=500, content=body)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("callbudget.app.main:app", host="0.0.0.0", port=8000, reload=True)
