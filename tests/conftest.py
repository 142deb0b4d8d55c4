"""Pytest fixtures for testing"""

import pytest
from decimal import Decimal
from typing import Callable, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from velocity_limits.api.main import create_app
from velocity_limits.domain.models import LimitConfig, LoadRequest
from velocity_limits.domain.parsing import parse_timestamp
from velocity_limits.evaluator import LoadLimitEvaluator
from velocity_limits.infrastructure.database.memory_store import InMemoryLedgerStore
from velocity_limits.infrastructure.database.models import Base
from velocity_limits.infrastructure.database.session import get_db


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


@pytest.fixture
def limits() -> LimitConfig:
    """Production defaults: $5,000/day, $20,000/week, 3 loads/day"""
    return LimitConfig(
        daily_amount_limit=Decimal("5000.00"),
        weekly_amount_limit=Decimal("20000.00"),
        daily_count_limit=3,
    )


@pytest.fixture
def store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def evaluator(store: InMemoryLedgerStore, limits: LimitConfig) -> LoadLimitEvaluator:
    return LoadLimitEvaluator(store, limits, lock_timeout_seconds=1.0)


@pytest.fixture
def make_request() -> Callable[..., LoadRequest]:
    """Build a LoadRequest from wire-style amount and timestamp strings"""

    def _make(load_id: str, amount: str, time: str, customer_id: str = "1234") -> LoadRequest:
        return LoadRequest(
            load_id=load_id,
            customer_id=customer_id,
            amount=Decimal(amount),
            time=parse_timestamp(time),
        )

    return _make
