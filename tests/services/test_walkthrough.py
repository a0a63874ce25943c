"""Walkthrough — each step's cost against the demo catalogue."""

import pytest

from pluto.core.errors import UnloadedPathError
from pluto.infrastructure.database import DatabaseSessionManager
from pluto.services.demo_seed import seed_demo
from pluto.services.walkthrough import STEPS, run_walkthrough


@pytest.fixture
async def manager(tmp_path):
    manager = DatabaseSessionManager(f"sqlite+aiosqlite:///{tmp_path}/walkthrough.db")
    yield manager
    await manager.dispose()


async def test_walkthrough_costs(manager):
    costs = await run_walkthrough(manager, seed=True)
    assert costs == {
        "lazy_tags_of_one_course": 2,
        "n_plus_one_authors": 12,
        "eager_authors": 1,
        "eager_multiple_levels": 1,
        "explicit_free_courses": 2,
    }
    assert list(costs) == [step.__name__ for step in STEPS]


async def test_seed_is_idempotent(manager):
    await manager.create_schema()
    async with manager.session() as db:
        assert await seed_demo(db) is True
    async with manager.session() as db:
        assert await seed_demo(db) is False


async def test_walkthrough_with_lazy_loading_disabled_stops_at_first_lazy_read(manager):
    with pytest.raises(UnloadedPathError):
        await run_walkthrough(manager, seed=True, lazy_loading_enabled=False)
