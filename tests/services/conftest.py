"""Service test fixtures — async DB, seeded catalogues, runners and a FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - Seeding and fetching use different sessions: a runner never starts with a
      warm identity map
    - get_db dependency overridden to use the test DB

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for loader behavior
      (PostgreSQL-specific features not exercised here)
    - db_manager patched with a manager built around the test engine
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from pluto.db.base import Base
from pluto.infrastructure.database import get_db, DatabaseSessionManager
import pluto.infrastructure.database as db_module
from pluto.models import Address, Author, Course, Tag
from pluto.services.demo_seed import seed_demo
from pluto.services.loading_runner import LoadingStrategyRunner
from pluto.main import app


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    """Session used for seeding only."""
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def fresh_session(test_session_factory):
    """Session for the code under test — empty identity map."""
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def runner(fresh_session):
    return LoadingStrategyRunner(fresh_session)


@pytest.fixture
async def demo_catalogue(test_db):
    await seed_demo(test_db)


@pytest.fixture
async def small_catalogue(test_db):
    """3 courses by 2 authors; course 2 is tagged A and B.

    author 1 (address in Oslo) → courses 1, 2
    author 2 (no address)      → course 3
    tag A moderated by author 2, tag B unmoderated
    """
    a1, a2 = Author(id=1, name="Ada"), Author(id=2, name="Brian")
    tag_a = Tag(id=1, name="A", moderator_id=2)
    tag_b = Tag(id=2, name="B")
    test_db.add_all([a1, a2, tag_a, tag_b])
    test_db.add(Address(id=1, author_id=1, street="1 Fjord Road", city="Oslo"))
    test_db.add_all([
        Course(id=1, name="Intro", author_id=1, full_price=0.0),
        Course(id=2, name="Tagged", author_id=1, full_price=10.0, tags=[tag_a, tag_b]),
        Course(id=3, name="Other", author_id=2, full_price=25.0, tags=[tag_b]),
    ])
    await test_db.commit()


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
