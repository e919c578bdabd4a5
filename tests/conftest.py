import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REPORT_TIMEZONE"] = "UTC"
os.environ["REPORT_LOCALE"] = "en"
os.environ["REPORT_COMPARE_PREVIOUS"] = "true"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import posdesk.models  # noqa: F401
from posdesk.db.database import Base, get_db
from posdesk.main import app


class FakeStorage:
    """In-memory stand-in for the storage collaborator."""

    def __init__(self, invoices=None, products=None, damaged_items=None, expenses=None):
        self.invoices = list(invoices or [])
        self.products = list(products or [])
        self.damaged_items = list(damaged_items or [])
        self.expenses = list(expenses or [])
        self.calls: list[str] = []

    async def get_all_invoices(self):
        self.calls.append("invoices")
        return self.invoices

    async def get_all_products(self):
        self.calls.append("products")
        return self.products

    async def get_all_damaged_items(self):
        self.calls.append("damaged_items")
        return self.damaged_items

    async def get_all_expenses(self):
        self.calls.append("expenses")
        return self.expenses


@pytest.fixture
def storage_factory():
    return FakeStorage


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
