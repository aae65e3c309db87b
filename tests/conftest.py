"""Shared test fixtures."""

import os

# Keep the app away from the network and the on-disk database during tests
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("REFRESH_RATES_ON_STARTUP", "false")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from datetime import date, datetime
from decimal import Decimal
import uuid

from pennywise.database import Base
from pennywise.dependencies import get_db, get_rate_service
from pennywise.errors import TransientSourceError
from pennywise.main import app
from pennywise.models.recurring import RecurringExpense, Frequency
from pennywise.services.exchange_rate_service import ExchangeRateService


class StubRateSource:
    """Rate source double that counts calls and can be told to fail."""

    def __init__(self, rates=None, error=None):
        self.rates = rates if rates is not None else {"USD": 1.0, "INR": 83.5, "EUR": 0.9}
        self.error = error
        self.calls = 0

    async def fetch_latest(self, base_currency):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return dict(self.rates)


class MemoryCache:
    """In-memory key-value cache."""

    def __init__(self, data=None):
        self.data = dict(data or {})

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value


class BrokenCache(MemoryCache):
    """Cache whose writes always fail."""

    def set(self, key, value):
        raise OSError("disk full")


class FakeClock:
    """Controllable replacement for datetime.now."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test using in-memory SQLite."""
    # Use StaticPool to ensure all connections use the same in-memory database
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def stub_source():
    return StubRateSource()


@pytest.fixture
def memory_cache():
    return MemoryCache()


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 2, 15, 9, 0, 0))


@pytest.fixture
def rate_service(stub_source, memory_cache, clock):
    """Rate service with a stub source, in-memory cache and fixed clock."""
    return ExchangeRateService(
        source=stub_source,
        cache=memory_cache,
        base_currency="USD",
        max_age_hours=24,
        clock=clock,
    )


@pytest.fixture
def offline_rate_service(memory_cache, clock):
    """Rate service whose source always fails."""
    return ExchangeRateService(
        source=StubRateSource(error=TransientSourceError("offline")),
        cache=memory_cache,
        base_currency="USD",
        max_age_hours=24,
        clock=clock,
    )


@pytest.fixture(scope="function")
def client(db_session, rate_service):
    """Create a test client with database and rate service overrides."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rate_service] = lambda: rate_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def user_id():
    return str(uuid.uuid4())


@pytest.fixture
def auth_headers(user_id):
    return {"X-User-Id": user_id}


@pytest.fixture
def sample_recurring(db_session, user_id):
    """A monthly 500 INR recurring expense due on 2026-02-15."""
    recurring = RecurringExpense(
        id=str(uuid.uuid4()),
        user_id=user_id,
        amount=Decimal("500.00"),
        currency="INR",
        description="Rent",
        frequency=Frequency.monthly,
        start_date=date(2026, 1, 15),
        next_execution_date=date(2026, 2, 15),
        is_active=True,
    )
    db_session.add(recurring)
    db_session.commit()
    db_session.refresh(recurring)
    return recurring
