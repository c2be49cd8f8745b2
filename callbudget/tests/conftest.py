import os

# Settings are cached on first use, so point them at throwaway locations first
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "development")

import pytest
from datetime import date
from uuid import uuid4
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from callbudget.app.models.models import Base, Budget, BudgetCategory, Expense, StartupCall, User
from callbudget.app.database import get_db_session
from callbudget.app.api.v1.deps import get_receipt_store
from callbudget.app.services.receipt_storage import LocalDiskStorage, ReceiptStore
from callbudget.app.main import app

@pytest.fixture(scope="session")
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    yield engine
    engine.dispose()

@pytest.fixture(scope="function")
def db_session(db_engine):
    """Returns a fresh SQLAlchemy session on empty tables for each test"""
    Base.metadata.create_all(bind=db_engine)
    Session = sessionmaker(bind=db_engine)
    session = Session()

    yield session
    session.close()
    Base.metadata.drop_all(bind=db_engine)

@pytest.fixture
def receipt_store(tmp_path):
    """Receipt store writing into a per-test temporary directory"""
    return ReceiptStore(LocalDiskStorage(str(tmp_path / "uploads")))

@pytest.fixture
def client(db_session, receipt_store):
    """Test client using the test session and the temporary receipt store"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db_session] = override_get_db
    app.dependency_overrides[get_receipt_store] = lambda: receipt_store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

@pytest.fixture
def test_user(db_session):
    """Creates a test user and returns it"""
    user = User(
        id=str(uuid4()),
        email="founder@example.com",
        display_name="Test Founder",
        role="entrepreneur"
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user

@pytest.fixture
def test_startup_call(db_session):
    """Creates a startup call and returns it"""
    startup_call = StartupCall(id=str(uuid4()), title="Green Energy Call 2025")
    db_session.add(startup_call)
    db_session.commit()
    db_session.refresh(startup_call)
    return startup_call

@pytest.fixture
def other_startup_call(db_session):
    """A second startup call for ownership checks"""
    startup_call = StartupCall(id=str(uuid4()), title="Fintech Call 2025")
    db_session.add(startup_call)
    db_session.commit()
    db_session.refresh(startup_call)
    return startup_call

@pytest.fixture
def test_budget(db_session, test_startup_call):
    """Creates a 1000 USD budget on the test startup call"""
    budget = Budget(
        id=str(uuid4()),
        startup_call_id=test_startup_call.id,
        title="Pilot Budget",
        total_amount=1000.0,
        currency="USD",
        fiscal_year="2025",
        status="active"
    )
    db_session.add(budget)
    db_session.commit()
    db_session.refresh(budget)
    return budget

@pytest.fixture
def test_category(db_session, test_budget):
    """Creates a category with 400 allocated inside the test budget"""
    category = BudgetCategory(
        id=str(uuid4()),
        budget_id=test_budget.id,
        name="Marketing",
        allocated_amount=400.0
    )
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category

@pytest.fixture
def make_expense(db_session, test_budget, test_user):
    """Factory inserting an expense row directly"""
    def _make(amount=100.0, expense_date=date(2025, 5, 21), budget=None, **fields):
        expense = Expense(
            id=str(uuid4()),
            budget_id=(budget or test_budget).id,
            created_by=test_user.id,
            title=fields.pop("title", "Conference tickets"),
            amount=amount,
            currency=fields.pop("currency", "USD"),
            date=expense_date,
            status=fields.pop("status", "pending"),
            **fields
        )
        db_session.add(expense)
        db_session.commit()
        db_session.refresh(expense)
        return expense
    return _make
