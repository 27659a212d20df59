"""Pytest fixtures for the integration engine.

Provides reusable test fixtures for:
- Database session on an in-memory SQLite database, recreated per test
- A test seller
- Credential encryption with a fixed test key
- ConnectionService wired to a fresh in-process operation guard
- FastAPI test client bound to the test session

Usage:
    def test_connect(service, seller):
        result = service.connect(seller.id, ProviderKind.CATALOG, credential_input)
"""

import os
import sys
from pathlib import Path

# Set environment variables BEFORE any imports to ensure they take effect
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OPERATION_GUARD_BACKEND"] = "memory"
os.environ["ENABLE_MOCK_PROVIDERS"] = "true"
os.environ.setdefault("ENCRYPTION_MASTER_KEY", "0" * 63 + "1")
os.environ.setdefault("LOG_JSON", "false")

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from typing import Any, Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from storelink.config import settings
from storelink.connections.guards import InProcessOperationGuard
from storelink.connections.service import ConnectionService
from storelink.credentials.encryption import EncryptionService
from storelink.credentials.schemas import CredentialInput
from storelink.database import get_db as database_get_db
from storelink.models import Base, Seller
from storelink.providers.registry_init import initialize_providers


TEST_ENCRYPTION_KEY = "0" * 63 + "1"

# StaticPool keeps one connection so the in-memory database survives across sessions
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function", autouse=True)
def encryption_key():
    """Initialize credential encryption with the fixed test key."""
    EncryptionService.initialize(TEST_ENCRYPTION_KEY)
    yield


@pytest.fixture(scope="function", autouse=True)
def providers():
    """Make sure the built-in provider adapters are registered."""
    initialize_providers()
    yield


@pytest.fixture(scope="function", autouse=True)
def short_disconnect_wait(monkeypatch):
    """Keep disconnect from waiting seconds on a held guard."""
    monkeypatch.setattr(settings, "DISCONNECT_LOCK_WAIT_SECONDS", 0.05)
    yield


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test.

    Creates all tables before the test and drops them after.
    """
    Base.metadata.create_all(bind=test_engine)

    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def seller(db_session: Session) -> Seller:
    seller = Seller(name="Test Store")
    db_session.add(seller)
    db_session.commit()
    db_session.refresh(seller)
    return seller


@pytest.fixture(scope="function")
def other_seller(db_session: Session) -> Seller:
    seller = Seller(name="Other Store")
    db_session.add(seller)
    db_session.commit()
    db_session.refresh(seller)
    return seller


@pytest.fixture(scope="function")
def guard() -> InProcessOperationGuard:
    return InProcessOperationGuard()


@pytest.fixture(scope="function")
def service(db_session: Session, guard: InProcessOperationGuard) -> ConnectionService:
    return ConnectionService(db_session, guard=guard)


@pytest.fixture(scope="function")
def client(db_session: Session):
    """Create a test client bound to the test database session."""
    from storelink.main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[database_get_db] = override_get_db

    yield TestClient(app)

    app.dependency_overrides.clear()


def mock_catalog_input(
    products: Optional[List[Dict[str, Any]]] = None,
    **options: Any,
) -> CredentialInput:
    """CredentialInput for the in-memory catalog provider serving `products`."""
    return CredentialInput(
        provider_type="MOCK_CATALOG",
        origin="mock-store.example",
        access_token="mock-token",
        options={"products": products or [], **options},
    )


def mock_messaging_input(provider_type: str = "MOCK_MESSAGING", **options: Any) -> CredentialInput:
    return CredentialInput(
        provider_type=provider_type,
        account_id="15550001111",
        access_token="mock-token",
        options=options,
    )


@pytest.fixture(scope="function")
def catalog_input():
    """Factory for MOCK_CATALOG credential input."""
    return mock_catalog_input


@pytest.fixture(scope="function")
def messaging_input():
    """Factory for MOCK_MESSAGING credential input."""
    return mock_messaging_input
