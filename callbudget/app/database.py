from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session

from callbudget.app.config import get_settings
from callbudget.app.errors import StorageFailure
from callbudget.app.logger import get_logger

logger = get_logger("database")

DATABASE_URL = get_settings().database_url

# Create SQLAlchemy engine
engine = create_engine(
    DATABASE_URL, connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
)

# Create sessionmaker
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create tables in the database
def create_tables():
    from callbudget.app.models.models import Base
    Base.metadata.create_all(bind=engine)

# Dependency to get the database session
def get_db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def commit_or_raise(db: Session, action: str):
    """Commit the session; on a database error roll back and raise StorageFailure"""
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Database error while trying to %s", action)
        raise StorageFailure(f"Failed to {action}", exc) from exc
