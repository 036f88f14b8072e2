"""Pytest fixtures for testing"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from typing import Generator
from zoneinfo import ZoneInfo
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from microloan.api.main import create_app
from microloan.api.dependencies import get_now
from microloan.infrastructure.database.models import Base, Client
from microloan.infrastructure.database.session import get_db
from microloan.domain.models import LoanTerms


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

LIMA = ZoneInfo("America/Lima")
NOW = datetime(2024, 1, 10, 12, 0, tzinfo=LIMA)


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
    """Create FastAPI test client with test database and a fixed clock"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: NOW
    return TestClient(app)


@pytest.fixture
def borrower(db: Session) -> Client:
    """Registered client without loans"""
    db_client = Client(dni="45678912", first_name="Rosa", last_name="Quispe")
    db.add(db_client)
    db.commit()
    return db_client


@pytest.fixture
def standard_terms() -> LoanTerms:
    """1000.00 at 12% a year over 12 months"""
    return LoanTerms(
        principal=Decimal("1000.00"),
        interest_rate=Decimal("0.12"),
        term_count=12,
        start_date=date(2024, 1, 15),
    )
