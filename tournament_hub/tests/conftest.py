"""
Shared fixtures: an in-memory database per test, an HTTP client bound to the
app with get_db overridden, and helpers for creating identities and tokens.
"""
import os

# Must be set before the application modules read their settings
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from datetime import timedelta
from typing import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tournament_hub.database import get_db
from tournament_hub.main import app
from tournament_hub.orm import Base
from tournament_hub.orm.base import utcnow
from tournament_hub.orm.tournament import Tournament
from tournament_hub.orm.user import Department, User, UserRole
from tournament_hub.security.passwords import hash_password
from tournament_hub.security.tokens import issue_token

TEST_DATABASE_URL = "sqlite+aiosqlite://"
DEFAULT_PASSWORD = "password123"


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Async test client; every request gets its own session on the test database."""
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# ================= HELPERS =================

_counter = {"n": 0}


async def create_user(
    session_factory,
    role: UserRole = UserRole.student,
    secondary_roles=None,
    password: str = DEFAULT_PASSWORD,
    is_active: bool = True,
    year_of_study: int = 2,
    email: str = None,
) -> User:
    _counter["n"] += 1
    n = _counter["n"]
    async with session_factory() as session:
        user = User(
            email=email or f"{role.value.replace('_', '')}{n}@college.edu",
            password_hash=hash_password(password),
            college_id=f"CID{n:06d}",
            full_name=f"{role.value.title()} {n}",
            department=Department.CSE,
            year_of_study=year_of_study,
            primary_role=role,
            secondary_roles=list(secondary_roles or []),
            is_active=is_active,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {issue_token(user)}"}


def tournament_payload(**overrides) -> dict:
    now = utcnow()
    payload = {
        "name": "Inter-College Valorant Cup",
        "description": "Five-a-side Valorant tournament for all departments",
        "game": "Valorant",
        "registrationStart": (now - timedelta(days=1)).isoformat(),
        "registrationEnd": (now + timedelta(days=7)).isoformat(),
        "startDate": (now + timedelta(days=10)).isoformat(),
        "maxTeams": 8,
        "teamSize": 5,
    }
    payload.update(overrides)
    return payload


async def create_tournament(session_factory, organizer: User, **overrides) -> Tournament:
    """Insert a tournament directly, bypassing the HTTP layer."""
    now = utcnow()
    fields = dict(
        name="Chess Blitz Open",
        description="Solo and team blitz chess",
        game="Chess",
        registration_start=now - timedelta(days=1),
        registration_end=now + timedelta(days=7),
        start_date=now + timedelta(days=10),
        max_teams=4,
    )
    requires_faculty_approval = overrides.pop("requires_faculty_approval", False)
    status = overrides.pop("status", None)
    fields.update(overrides)
    async with session_factory() as session:
        tournament = Tournament.create(organizer.id, requires_faculty_approval=requires_faculty_approval, **fields)
        if status is not None:
            tournament.status = status
        session.add(tournament)
        await session.commit()
        return tournament
