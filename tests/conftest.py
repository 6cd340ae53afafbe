"""
Shared test fixtures.

Sets up an isolated SQLite database so tests never touch
the real database. Tables are created before each test and
dropped after it, so no test data persists.
"""

import os

# Must be set before the app module builds its engine
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from casino_wallet.config import Settings
from casino_wallet.main import app
from casino_wallet.models.base import Base, get_db
from casino_wallet.schemas.request import BankDepositPayment, UsdtPayout
from casino_wallet.services.account_service import AccountService


TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)


# pysqlite's own transaction handling breaks SAVEPOINT;
# let SQLAlchemy emit BEGIN itself.
@event.listens_for(engine, "connect")
def _disable_pysqlite_begin(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None


@event.listens_for(engine, "begin")
def _emit_begin(conn):
    conn.exec_driver_sql("BEGIN")


TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def session_factory():
    """
    Open extra sessions on the test database, e.g. to play a
    second admin racing the first. Callers close them.
    """
    return TestSessionLocal


@pytest.fixture
def client(db_session):
    """
    Provide a test client bound to the test session.

    get_db is overridden so endpoints and assertions share
    one session.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def settings():
    """Default limits and rates: 50 welcome, 5% bonuses, 1% fee."""
    return Settings()


@pytest.fixture
def make_account(db_session, settings):
    """Create a committed account; returns the Account."""
    def _make(username, referred_by_id=None, referral_code=None):
        account = AccountService(db_session, settings).create_account(
            username,
            referred_by_id=referred_by_id,
            referral_code=referral_code,
        )
        db_session.commit()
        return account
    return _make


@pytest.fixture
def bank_payment():
    return BankDepositPayment(
        bank_account_id="HBL-001",
        transaction_reference="TRX-123",
    )


@pytest.fixture
def usdt_payout():
    return UsdtPayout(wallet_address="TXyz123abc")
