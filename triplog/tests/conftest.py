"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool, Pool

from triplog.app.main import app
from triplog.app.db.session import get_db, Base
from triplog.app.core.jwt import create_access_token
from triplog.app.models.tenant import Tenant, TenantUser
from triplog.app.services.tenancy import TenantContext

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)).lower():
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


@pytest.fixture(scope="session", autouse=True)
def apply_overrides():
    """Point the app at the in-memory database for the whole session."""
    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides = {}


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    
    yield
    
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


async def make_tenant(session, name: str, user_id: str) -> TenantContext:
    tenant = Tenant(name=name)
    session.add(tenant)
    await session.flush()
    session.add(TenantUser(tenant_id=tenant.id, user_id=user_id))
    await session.commit()
    return TenantContext(tenant_id=tenant.id, user_id=user_id)


def auth_headers(user_id: str) -> dict:
    token = create_access_token(data={"sub": f"{user_id}@test.com", "user_id": user_id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def tenant(db_session):
    """Tenant with one linked driver."""
    return await make_tenant(db_session, "Acme Hauling", "driver-1")


@pytest.fixture
async def other_tenant(db_session):
    """Second tenant for isolation tests."""
    return await make_tenant(db_session, "Other Freight", "driver-2")


@pytest.fixture
def headers(tenant):
    return auth_headers(tenant.user_id)


@pytest.fixture
def other_headers(other_tenant):
    return auth_headers(other_tenant.user_id)


@pytest.fixture
def stranger_headers():
    """Valid token for a user not linked to any tenant."""
    return auth_headers("stranger")
