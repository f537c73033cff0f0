"""Pytest fixtures for testing"""

import uuid
import pytest
from datetime import date
from decimal import Decimal
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from abudget.api.main import create_app
from abudget.infrastructure.database.models import Base
from abudget.infrastructure.database.session import get_db
from abudget.domain.models import (
    Bucket,
    BudgetPeriod,
    Category,
    CategoryAllocation,
    IncomeSource,
    Methodology,
    Transaction,
)
from abudget.domain.categories import CategoryTree


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


def make_period(
    start: date,
    end: date,
    incomes=(("Salary", "3000"),),
    allocations=(),
    period_id: uuid.UUID = None,
    methodology: Methodology = Methodology.ZERO_BASED,
) -> BudgetPeriod:
    """Period with the given (name, amount) incomes and (category_id, planned, carry_over) allocations"""
    period_id = period_id or uuid.uuid4()
    return BudgetPeriod(
        id=period_id,
        methodology=methodology,
        start_date=start,
        end_date=end,
        income_sources=[IncomeSource(id=uuid.uuid4(), source_name=n, amount=Decimal(a)) for n, a in incomes],
        allocations=[
            CategoryAllocation(
                id=uuid.uuid4(),
                category_id=category_id,
                budget_period_id=period_id,
                planned_amount=Decimal(planned),
                carry_over_amount=Decimal(carry),
            )
            for category_id, planned, carry in allocations
        ],
    )


def make_transaction(
    day: date,
    sub_total: str,
    tax: str = None,
    category_id: uuid.UUID = None,
    sub_category_id: uuid.UUID = None,
    bucket: Bucket = Bucket.NEEDS,
    merchant: str = "Store",
) -> Transaction:
    return Transaction(
        id=uuid.uuid4(),
        date=day,
        sub_total=Decimal(sub_total),
        tax=Decimal(tax) if tax is not None else None,
        merchant=merchant,
        bucket=bucket,
        category_id=category_id,
        sub_category_id=sub_category_id,
    )


@pytest.fixture
def food() -> Category:
    return Category(id=uuid.uuid4(), name="Food", sort_order=0, is_default=True)


@pytest.fixture
def groceries(food: Category) -> Category:
    return Category(id=uuid.uuid4(), name="Groceries", parent_id=food.id, sort_order=0)


@pytest.fixture
def dining(food: Category) -> Category:
    return Category(id=uuid.uuid4(), name="Dining Out", parent_id=food.id, sort_order=1)


@pytest.fixture
def housing() -> Category:
    return Category(id=uuid.uuid4(), name="Housing", sort_order=1, is_default=True)


@pytest.fixture
def category_tree(food, groceries, dining, housing) -> CategoryTree:
    return CategoryTree([food, groceries, dining, housing])


@pytest.fixture
def january(food, housing) -> BudgetPeriod:
    return make_period(
        date(2025, 1, 1),
        date(2025, 1, 31),
        allocations=((food.id, "400", "0"), (housing.id, "1200", "0")),
    )
