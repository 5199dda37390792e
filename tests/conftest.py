"""Test configuration and fixtures."""

import os
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.settings import Settings
from db.models import Base, StoredRecord
from db.storage import BANK_ACCOUNT, CREDIT_CARD, PAYMENT, StorageService
from payments.bridge import PaymentBridge


@pytest.fixture(autouse=True)
def setup_test_environment():
    """Setup test environment variables before each test."""
    original_env = dict(os.environ)

    os.environ.update(
        {
            "DATABASE_URL": "sqlite:///:memory:",  # Use in-memory for faster tests
            "STRIPE_API_KEY": "sk_test_dummy",
            "APP_NAME": "Test Bridge",
            "ENVIRONMENT": "development",
            "DISABLE_TRACING": "true",
            "DEBUG": "true",
        }
    )

    yield

    # Restore original env vars
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def mock_settings():
    return Settings(
        DATABASE_URL="sqlite:///:memory:",
        STRIPE_API_KEY="sk_test_mock",
        APP_NAME="Test Bridge",
        DEBUG=True,
        ENVIRONMENT="development",
    )


@pytest.fixture
def processor():
    """Processor double answering every capability with a plausible entity."""
    mock = MagicMock()
    mock.create_account = AsyncMock(return_value={"id": "acct_1"})
    mock.create_customer = AsyncMock(
        return_value={"id": "cus_1", "default_source": "ba_1"}
    )
    mock.update_account = AsyncMock(return_value={"id": "acct_1"})
    mock.retrieve_account = AsyncMock(
        return_value={
            "id": "acct_1",
            "legal_entity": {"verification": {"status": "verified"}},
        }
    )
    mock.create_charge = AsyncMock(return_value={"id": "ch_1"})
    mock.create_transfer = AsyncMock(return_value={"id": "tr_1"})
    mock.create_file = AsyncMock(return_value={"id": "file_1"})
    mock.verify_bank_account = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def test_db_engine():
    """Create a test database engine and setup tables."""
    # Use StaticPool and check_same_thread=False for SQLite testing
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(test_db_engine):
    return sessionmaker(
        autocommit=False, autoflush=False, expire_on_commit=False, bind=test_db_engine
    )


@pytest.fixture
def storage(session_factory):
    return StorageService(session_factory)


@pytest.fixture
def bridge(processor, storage):
    return PaymentBridge(processor, storage)


@pytest.fixture
def seed_record(session_factory, storage):
    """Insert a record directly and return a storage handle on it."""

    def _seed(record_type, record_id, data):
        with session_factory() as session:
            session.add(StoredRecord(record_type=record_type, id=record_id, data=data))
            session.commit()
        return storage.create_record(record_type, record_id)

    return _seed


@pytest.fixture
def bank_account(seed_record):
    return seed_record(
        BANK_ACCOUNT,
        "bank_src",
        {
            "_stripe": {
                "customer_id": "cus_src",
                "account_id": "acct_src",
                "bankAccount_id": "ba_src",
            }
        },
    )


@pytest.fixture
def verified_bank_account(seed_record):
    return seed_record(
        BANK_ACCOUNT,
        "bank_verified",
        {
            "_stripe": {
                "customer_id": "cus_verified",
                "account_id": "acct_verified",
                "bankAccount_id": "ba_verified",
            },
            "verifiedAt": "2025-06-01T12:00:00+00:00",
        },
    )


@pytest.fixture
def credit_card(seed_record):
    return seed_record(
        CREDIT_CARD,
        "card_1",
        {"_stripe": {"customer_id": "cus_card", "creditCard_id": "card_src"}},
    )


@pytest.fixture
def stored_payments(session_factory):
    """Return every stored Payment record's data."""

    def _payments():
        with session_factory() as session:
            rows = session.scalars(
                select(StoredRecord).where(StoredRecord.record_type == PAYMENT)
            ).all()
            return [dict(row.data) for row in rows]

    return _payments


@pytest.fixture
def client(bridge, storage):
    """Test client with the bridge wired to the processor double."""
    from api.dependencies import get_bridge, get_storage
    from db.session import reset_engines
    from main import app

    reset_engines()

    app.dependency_overrides[get_bridge] = lambda: bridge
    app.dependency_overrides[get_storage] = lambda: storage

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    reset_engines()
