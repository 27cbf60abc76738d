"""
Voyage Teams Backend: Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Three kinds of storage doubles:
       - mock_db_session: AsyncMock session for pure unit tests
       - db_session: a real AsyncSession on in-memory SQLite (aiosqlite)
         with the application's models, for behaviour that depends on
         constraints, counts and transactions
       - shared_engine: file-backed SQLite with one connection per session,
         for tests that run transactions concurrently

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session: Mock database session (no real DB needed)
    ├── db_engine → db_session: In-memory SQLite with all tables created
    ├── seed: Two teams, four members, three categories
    ├── make_item: Creates a team tech item with votes from given members
    ├── count_rows: Counts rows of a model
    ├── shared_engine → shared_session_factory, shared_seed, make_shared_item
    └── test_client: HTTPX AsyncClient with db/session overrides
"""

import os

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["LOG_LEVEL"] = "WARNING"

import uuid
from types import SimpleNamespace
from typing import AsyncGenerator, Iterable
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.auth import AuthenticatedCaller
from app.database import Base, get_db_session
from app.models.team import User, VoyageTeam, VoyageTeamMember
from app.models.tech import TeamTechStackItem, TeamTechStackItemVote, TechStackCategory


# ══════════════════════════════════════════════════════════════════════════
# Mocked Storage
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = 7
        member_id = await membership_service.resolve_member_identity(mock_db_session, ...)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.scalar = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Real Storage (in-memory SQLite)
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """
    In-memory SQLite engine shared by every session of one test.

    StaticPool keeps a single connection, otherwise each connection would
    see its own empty in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


async def seed_reference_data(session: AsyncSession) -> SimpleNamespace:
    """
    Commit reference data through `session` and describe it.

    Team "tier3-team-01" has alice, bob and carol; "tier3-team-02" has dave.
    `outsider` is a caller with no user row and no membership.
    """
    team = VoyageTeam(name="tier3-team-01")
    other_team = VoyageTeam(name="tier3-team-02")
    users = {
        name: User(
            email=f"{name}@example.com",
            first_name=name.capitalize(),
            last_name="Tester",
            avatar=f"https://avatars.example.com/{name}.png",
        )
        for name in ("alice", "bob", "carol", "dave")
    }
    categories = [
        TechStackCategory(name="Frontend", description="Frontend libraries"),
        TechStackCategory(name="Backend", description="Backend frameworks"),
        TechStackCategory(name="Database", description="Data stores"),
    ]
    session.add_all([team, other_team, *users.values(), *categories])
    await session.flush()

    members = {
        name: VoyageTeamMember(
            user_id=users[name].id,
            voyage_team_id=other_team.id if name == "dave" else team.id,
        )
        for name in users
    }
    session.add_all(members.values())
    await session.commit()

    return SimpleNamespace(
        team_id=team.id,
        other_team_id=other_team.id,
        frontend_id=categories[0].id,
        backend_id=categories[1].id,
        database_id=categories[2].id,
        alice=AuthenticatedCaller(user_id=users["alice"].id),
        bob=AuthenticatedCaller(user_id=users["bob"].id),
        carol=AuthenticatedCaller(user_id=users["carol"].id),
        dave=AuthenticatedCaller(user_id=users["dave"].id),
        outsider=AuthenticatedCaller(user_id=uuid.uuid4()),
        alice_member_id=members["alice"].id,
        bob_member_id=members["bob"].id,
        carol_member_id=members["carol"].id,
        dave_member_id=members["dave"].id,
    )


@pytest_asyncio.fixture
async def seed(db_session):
    """Committed reference data on the in-memory database."""
    return await seed_reference_data(db_session)


async def insert_item(
    session: AsyncSession,
    team_id: int,
    category_id: int,
    name: str,
    voter_member_ids: Iterable[int],
    is_selected: bool = False,
) -> int:
    """Commit a team tech item plus one vote per given member id."""
    item = TeamTechStackItem(
        name=name,
        category_id=category_id,
        voyage_team_id=team_id,
        is_selected=is_selected,
    )
    session.add(item)
    await session.flush()
    session.add_all(
        TeamTechStackItemVote(team_tech_id=item.id, team_member_id=member_id)
        for member_id in voter_member_ids
    )
    await session.commit()
    return item.id


@pytest.fixture
def make_item(db_session):
    """
    Factory: commit a team tech item plus one vote per given member id.

    Usage:
        item_id = await make_item(seed.team_id, seed.frontend_id, "React",
                                  [seed.alice_member_id])
    """

    async def _make(
        team_id: int,
        category_id: int,
        name: str,
        voter_member_ids: Iterable[int],
        is_selected: bool = False,
    ) -> int:
        return await insert_item(
            db_session, team_id, category_id, name, voter_member_ids, is_selected
        )

    return _make


@pytest.fixture
def count_rows(db_session):
    """Factory: count rows of a model, optionally filtered."""

    async def _count(model, *criteria) -> int:
        return await db_session.scalar(select(func.count()).select_from(model).where(*criteria))

    return _count


# ══════════════════════════════════════════════════════════════════════════
# Shared Storage (file-backed SQLite, one connection per session)
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def shared_engine(tmp_path):
    """
    File-backed SQLite engine whose sessions use separate connections, so
    two sessions driven by asyncio.gather really compete for the database.

    Every transaction starts with BEGIN IMMEDIATE: the second writer waits
    (up to `timeout` seconds) for the first to commit or roll back, the
    SQLite counterpart of the row locks taken on PostgreSQL.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'voting.db'}",
        connect_args={"timeout": 30},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def shared_session_factory(shared_engine):
    return async_sessionmaker(shared_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def shared_seed(shared_session_factory):
    """Reference data committed to the shared database."""
    async with shared_session_factory() as session:
        return await seed_reference_data(session)


@pytest.fixture
def make_shared_item(shared_session_factory):
    """Factory: like make_item, on the shared database."""

    async def _make(team_id, category_id, name, voter_member_ids, is_selected=False) -> int:
        async with shared_session_factory() as session:
            return await insert_item(
                session, team_id, category_id, name, voter_member_ids, is_selected
            )

    return _make


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(db_session):
    """
    HTTPX AsyncClient on the FastAPI app, with the request session replaced
    by the test's SQLite session (same rollback-on-error semantics;
    write handlers commit themselves).

    Usage:
        response = await test_client.get("/api/voyages/teams/1/techs")
    """
    from app.main import app

    async def override_db_session():
        try:
            yield db_session
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db_session] = override_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


def caller_headers(caller: AuthenticatedCaller) -> dict:
    return {"X-User-ID": str(caller.user_id)}


@pytest.fixture
def headers_for():
    """Build the identity header the auth gateway would forward."""
    return caller_headers
