from uuid import uuid4
from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Column, String, DateTime, Float, ForeignKey, Date, Text
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

# --- ENUMS ---

class UserRole(str, Enum):
    ADMIN = "admin"
    ENTREPRENEUR = "entrepreneur"
    SPONSOR = "sponsor"
    REVIEWER = "reviewer"

class BudgetStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    CLOSED = "closed"
    ARCHIVED = "archived"

class ExpenseStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    IN_REVIEW = "in_review"
    REJECTED = "rejected"

# --- SQLALCHEMY MODELS ---

class User(Base):
    __tablename__ = "users"
    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    email = Column(String, unique=True, nullable=False)
    display_name = Column(String, nullable=True)
    role = Column(String, default=UserRole.ENTREPRENEUR.value)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    expenses = relationship("Expense", back_populates="creator")

class StartupCall(Base):
    __tablename__ = "startup_calls"
    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String, default="open")
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    budgets = relationship("Budget", back_populates="startup_call")

class Budget(Base):
    __tablename__ = "budgets"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    startup_call_id = Column(String, ForeignKey("startup_calls.id"), nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    total_amount = Column(Float, nullable=False)
    currency = Column(String, nullable=False, default="USD")
    fiscal_year = Column(String, nullable=False)
    status = Column(String, nullable=False, default=BudgetStatus.DRAFT.value)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    startup_call = relationship("StartupCall", back_populates="budgets")
    categories = relationship("BudgetCategory", back_populates="budget")
    expenses = relationship("Expense", back_populates="budget")

class BudgetCategory(Base):
    """Named sub-allocation of a budget; allocations are advisory"""
    __tablename__ = "budget_categories"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    budget_id = Column(String, ForeignKey("budgets.id"), nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    allocated_amount = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    budget = relationship("Budget", back_populates="categories")

class Expense(Base):
    __tablename__ = "expenses"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    budget_id = Column(String, ForeignKey("budgets.id"), nullable=False)
    # Plain reference: deleting a category leaves it dangling unless detached
    category_id = Column(String, nullable=True, index=True)
    created_by = Column(String, ForeignKey("users.id"), nullable=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    amount = Column(Float, nullable=False)
    currency = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    status = Column(String, nullable=False, default=ExpenseStatus.PENDING.value)
    review_note = Column(Text, nullable=True)
    receipt = Column(String, nullable=True)  # public-relative path of the stored file
    receipt_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    budget = relationship("Budget", back_populates="expenses")
    creator = relationship("User", back_populates="expenses")
