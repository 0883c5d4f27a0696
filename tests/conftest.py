"""
Pytest configuration and fixtures.
"""

import os

# Set required env vars before importing src modules
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("ENCRYPTION_KEY", "test-encryption-key")

from decimal import Decimal

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.api import api_router
from src.auth.jwt import create_access_token
from src.auth.middleware import AuthMiddleware
from src.db import get_db
from src.models import AdNetwork, Base, User, UserRole
from src.services.api_keys import ApiRateLimiter
from src.services.cache import RevenueCache
from src.services.revenue_share import set_domain_assignment
from src.utils.password import hash_password


# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine. StaticPool keeps one in-memory database per test."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create test database session."""
    async with session_factory() as session:
        yield session


async def _create_user(db, username: str, role: UserRole, **kwargs) -> User:
    user = User(
        username=username,
        password_hash=hash_password("password"),
        role=role,
        display_name=kwargs.pop("display_name", username.capitalize()),
        **kwargs,
    )
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def admin_user(db_session):
    return await _create_user(db_session, "admin", UserRole.ADMIN)


@pytest_asyncio.fixture
async def publisher(db_session):
    return await _create_user(db_session, "publisher", UserRole.PUBLISHER)


@pytest_asyncio.fixture
async def assign(db_session):
    """assign(domain, network, user, rev_share=80) -> committed DomainAssignment"""

    async def _assign(domain, network: AdNetwork, user: User, rev_share=Decimal("80")):
        assignment = await set_domain_assignment(db_session, domain, network, user.id, rev_share)
        await db_session.commit()
        return assignment

    return _assign


@pytest.fixture
def cache():
    return RevenueCache()


@pytest.fixture
def app(session_factory, cache):
    """API app wired to the test database, without the startup lifespan."""
    application = FastAPI()
    application.add_middleware(AuthMiddleware)
    application.include_router(api_router)
    application.state.cache = cache
    application.state.api_rate_limiter = ApiRateLimiter()

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


@pytest.fixture
def auth_headers():
    """auth_headers(user) -> Bearer header for that user."""

    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user.id, user.role.value)}"}

    return _headers
