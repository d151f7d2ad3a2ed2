"""
Root test configuration and fixtures.

Every test that touches the database gets its own in-memory SQLite
database behind a Database handle, so committed rows never leak between
tests. Set TEST_DATABASE_URL to run against PostgreSQL instead.
"""

import os
import uuid
from typing import Callable, Generator, Optional

import pytest
from sqlalchemy import text
from sqlalchemy.orm import Session

# Set test environment
os.environ.setdefault("ENV", "test")
os.environ.setdefault("ENCRYPTION_KEY", "test-encryption-key-for-storesync")

from storesync.config.settings import DatabaseSettings, SyncSettings, normalize_database_url
from storesync.database.init_db import init_db
from storesync.database.session import Database
from storesync.db_base import Base
from storesync.models import Tenant, User
from storesync.platform.secrets import encrypt_secret
from storesync.tests.helpers import TEST_ACCESS_TOKEN, RecordingSleep


def _get_test_database_url() -> str:
    """Get database URL for tests."""
    return os.getenv("TEST_DATABASE_URL") or "sqlite:///:memory:"


def _is_postgres() -> bool:
    return _get_test_database_url().startswith(("postgres", "postgresql"))


@pytest.fixture
def database() -> Generator[Database, None, None]:
    """
    Open database handle with all tables created.

    SQLite in-memory by default (fresh per test); PostgreSQL tables are
    dropped afterwards.
    """
    db = Database(DatabaseSettings(url=normalize_database_url(_get_test_database_url())))
    if _is_postgres():
        try:
            db.open()
            with db.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as e:
            pytest.skip(f"PostgreSQL not available. Error: {e}")
    else:
        db.open()

    init_db(db)
    yield db

    if _is_postgres():
        Base.metadata.drop_all(bind=db.engine)
    db.close()


@pytest.fixture
def db_session(database) -> Generator[Session, None, None]:
    """Session on the per-test database; closed after the test."""
    with database.session() as session:
        yield session


@pytest.fixture
def sync_settings() -> SyncSettings:
    return SyncSettings(tenant_pacing_seconds=2.0)


@pytest.fixture
def fake_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_user(db_session) -> Callable[..., User]:
    """Factory that persists a user."""
    def _make(email: Optional[str] = None) -> User:
        user = User(id=str(uuid.uuid4()), email=email)
        db_session.add(user)
        db_session.commit()
        return user
    return _make


@pytest.fixture
def make_tenant(db_session) -> Callable[..., Tenant]:
    """
    Factory that persists a tenant for a user.

    Pass access_token=None to create a store without credentials.
    """
    def _make(
        user: User,
        store_name: str = "Test Store",
        shopify_domain: Optional[str] = None,
        access_token: Optional[str] = TEST_ACCESS_TOKEN,
    ) -> Tenant:
        tenant = Tenant(
            id=str(uuid.uuid4()),
            user_id=user.id,
            store_name=store_name,
            shopify_domain=shopify_domain or f"{uuid.uuid4().hex[:12]}.myshopify.com",
            access_token_encrypted=encrypt_secret(access_token) if access_token else None,
        )
        db_session.add(tenant)
        db_session.commit()
        return tenant
    return _make


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow-running")
