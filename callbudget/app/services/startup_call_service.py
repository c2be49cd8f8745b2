from sqlalchemy.orm import Session

from callbudget.app.database import commit_or_raise
from callbudget.app.errors import NotFound
from callbudget.app.logger import get_logger
from callbudget.app.models.models import StartupCall
from callbudget.app.schemas.startup_calls import StartupCallCreate

logger = get_logger("startup_calls")

def create_startup_call(db: Session, call_data: StartupCallCreate) -> StartupCall:
    startup_call = StartupCall(
        title=call_data.title,
        description=call_data.description,
        status=call_data.status
    )
    db.add(startup_call)
    commit_or_raise(db, "create startup call")
    db.refresh(startup_call)

    logger.info("Created startup call %s", startup_call.id)
    return startup_call

def get_startup_call(db: Session, startup_call_id: str) -> StartupCall:
    startup_call = db.query(StartupCall).filter(StartupCall.id == startup_call_id).first()
    if not startup_call:
        raise NotFound("Startup call not found")
    return startup_call
