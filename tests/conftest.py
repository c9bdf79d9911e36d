"""Shared test fixtures — async DB, client, auth helpers, factories.

Reusable across all test modules (auth, users, attendance, salary, etc.).
Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Set test JWT_SECRET before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")

import hashlib
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from hrms.common.constants import UserRole
from hrms.config import settings
from hrms.database import Base, get_db
from hrms.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import hrms.announcements.models  # noqa: F401
import hrms.applications.models  # noqa: F401
import hrms.attendance.models  # noqa: F401
import hrms.auth.models  # noqa: F401
import hrms.common.audit  # noqa: F401
import hrms.expenses.models  # noqa: F401
import hrms.holidays.models  # noqa: F401
import hrms.messages.models  # noqa: F401
import hrms.notifications.models  # noqa: F401
import hrms.salary.models  # noqa: F401
import hrms.users.models  # noqa: F401

# ── SQLite compat: compile PG-specific types to TEXT ────────────────

from sqlalchemy.dialects.postgresql import INET, JSONB, UUID as PG_UUID
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _jsonb_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(INET, "sqlite")
def _inet_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine.sync_engine, "connect")
def _register_sqlite_functions(dbapi_conn, connection_record):
    """Register NOW() as a SQLite custom function."""
    dbapi_conn.create_function(
        "NOW", 0, lambda: datetime.now(timezone.utc).isoformat(),
    )


TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from hrms.common.rate_limit import limiter

    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

async def make_department(db: AsyncSession, name: str = "Engineering") -> dict:
    from hrms.users.models import Department

    data = dict(id=uuid.uuid4(), name=name, description=f"{name} team", is_active=True)
    db.add(Department(**data))
    await db.commit()
    return data


async def make_user(
    db: AsyncSession,
    *,
    role: UserRole = UserRole.employee,
    username: Optional[str] = None,
    department_id: Optional[uuid.UUID] = None,
    base_salary: Decimal = Decimal("3000.00"),
    password_hash: str = "not-a-real-hash",
    is_active: bool = True,
) -> dict:
    """Insert a user directly and return its data dict."""
    from hrms.users.models import User

    suffix = uuid.uuid4().hex[:6]
    username = username or f"{role.value}.{suffix}"
    data = dict(
        id=uuid.uuid4(),
        username=username,
        password_hash=password_hash,
        role=role.value,
        is_active=is_active,
        full_name=f"{role.value.title()} {suffix}",
        employee_code=f"T-{suffix.upper()}",
        email=f"{username}@example.com",
        department_id=department_id,
        base_salary=base_salary,
    )
    db.add(User(**data))
    await db.commit()
    return data


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    user_id: uuid.UUID,
    role: UserRole = UserRole.employee,
    expired: bool = False,
) -> str:
    """Generate a JWT access token for testing."""
    if expired:
        exp = datetime.now(timezone.utc) - timedelta(hours=1)
    else:
        exp = datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS)
    payload = {
        "sub": str(user_id),
        "role": role.value,
        "type": "access",
        "jti": uuid.uuid4().hex,
        "exp": exp,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


async def headers_for(db: AsyncSession, user: dict) -> dict[str, str]:
    """Return Bearer auth headers with a valid session persisted in the DB."""
    from hrms.auth.models import UserSession

    token = create_access_token(user["id"], UserRole(user["role"]))
    db.add(
        UserSession(
            id=uuid.uuid4(),
            user_id=user["id"],
            token_hash=hashlib.sha256(token.encode()).hexdigest(),
            expires_at=datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS),
            is_revoked=False,
        )
    )
    await db.commit()
    return {"Authorization": f"Bearer {token}"}


# ── Common fixtures ─────────────────────────────────────────────────

@pytest.fixture
async def department(db) -> dict:
    return await make_department(db)


@pytest.fixture
async def other_department(db) -> dict:
    return await make_department(db, name="Sales")


@pytest.fixture
async def admin(db) -> dict:
    return await make_user(db, role=UserRole.admin, username="admin")


@pytest.fixture
async def manager(db, department) -> dict:
    return await make_user(
        db, role=UserRole.manager, username="manager", department_id=department["id"],
    )


@pytest.fixture
async def employee(db, department) -> dict:
    return await make_user(
        db, role=UserRole.employee, username="employee", department_id=department["id"],
    )


@pytest.fixture
async def outsider(db, other_department) -> dict:
    """An employee of a different department."""
    return await make_user(
        db, role=UserRole.employee, username="outsider", department_id=other_department["id"],
    )


@pytest.fixture
async def admin_headers(db, admin) -> dict[str, str]:
    return await headers_for(db, admin)


@pytest.fixture
async def manager_headers(db, manager) -> dict[str, str]:
    return await headers_for(db, manager)


@pytest.fixture
async def employee_headers(db, employee) -> dict[str, str]:
    return await headers_for(db, employee)


@pytest.fixture
async def outsider_headers(db, outsider) -> dict[str, str]:
    return await headers_for(db, outsider)
