import os
from datetime import date
from typing import AsyncGenerator, Dict
from uuid import uuid4

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from fee_registry.auth.security import create_access_token
from fee_registry.core.models import AcademicYear, Branch, Organization
from fee_registry.db.session import Base, get_db
from fee_registry.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture()
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory SQLite DB per test; StaticPool keeps the one connection alive."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for a test and override FastAPI dependency."""
    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.clear()


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def _make_organization(db: AsyncSession, name: str, code: str) -> Organization:
    org = Organization(name=name, code=code)
    db.add(org)
    await db.commit()
    await db.refresh(org)
    db.expunge(org)
    return org


@pytest.fixture()
async def org_a(db_session: AsyncSession) -> Organization:
    return await _make_organization(db_session, "Green Valley School", "SCH-A001")


@pytest.fixture()
async def org_b(db_session: AsyncSession) -> Organization:
    return await _make_organization(db_session, "Hill Top Academy", "SCH-B002")


@pytest.fixture()
async def academic_year_a(db_session: AsyncSession, org_a: Organization) -> AcademicYear:
    ay = AcademicYear(
        organization_id=org_a.id,
        name="2025-2026",
        start_date=date(2025, 6, 1),
        end_date=date(2026, 3, 31),
    )
    db_session.add(ay)
    await db_session.commit()
    await db_session.refresh(ay)
    db_session.expunge(ay)
    return ay


@pytest.fixture()
async def branch_a(db_session: AsyncSession, org_a: Organization) -> Branch:
    branch = Branch(organization_id=org_a.id, name="North Campus", code="NC")
    db_session.add(branch)
    await db_session.commit()
    await db_session.refresh(branch)
    db_session.expunge(branch)
    return branch


def auth_headers(organization: Organization, role: str = "ORG_ADMIN", branch: Branch = None) -> Dict[str, str]:
    subject = {
        "sub": str(uuid4()),
        "organization_id": str(organization.id),
        "role": role,
    }
    if branch is not None:
        subject["branch_id"] = str(branch.id)
    return {"Authorization": f"Bearer {create_access_token(subject=subject)}"}


@pytest.fixture()
def headers_for():
    """Build Authorization headers for a caller of the given organization and role."""
    return auth_headers
