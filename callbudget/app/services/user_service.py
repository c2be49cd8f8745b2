from typing import Optional
from sqlalchemy.orm import Session

from callbudget.app.database import commit_or_raise
from callbudget.app.errors import DuplicateEmail, InvalidUser, NotFound
from callbudget.app.logger import get_logger
from callbudget.app.models.models import User
from callbudget.app.schemas.users import UserCreate

logger = get_logger("users")

def create_user(db: Session, user_data: UserCreate):
    """Service function to create a new user"""
    # Check if user with this email already exists
    existing_user = db.query(User).filter(User.email == user_data.email).first()
    if existing_user:
        raise DuplicateEmail("Email already registered")

    new_user = User(
        email=user_data.email,
        display_name=user_data.display_name,
        role=user_data.role.value
    )
    db.add(new_user)
    commit_or_raise(db, "create user")
    db.refresh(new_user)

    logger.info("Created user %s (%s)", new_user.id, new_user.role)
    return new_user

def get_user_by_id(db: Session, user_id: str):
    """Service function to get a user by ID"""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound(f"User with id {user_id} not found")
    return user

def resolve_acting_user(db: Session, explicit_user_id: Optional[str], session_user_id: Optional[str]) -> User:
    """Pick the user an expense is recorded against.

    An explicitly supplied id wins over the session identity; whichever is
    used must exist.
    """
    user_id = explicit_user_id or session_user_id
    if not user_id:
        raise InvalidUser("No acting user: sign in or provide created_by")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise InvalidUser(f"User with id {user_id} does not exist")
    return user
