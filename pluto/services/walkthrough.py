"""Walkthrough — replays the lazy / N+1 / eager / explicit loading story against a database.

Invariants:
    - Each step is its own unit of work (fresh session), so no step benefits from
      another step's identity map
    - Every step logs the round trips it cost

Design Decisions:
    - Logging, not print: the same JSON/text formatter the API uses
"""

import argparse
import asyncio
import logging

from pluto.config import get_settings
from pluto.core.domain_types import LoadingStrategy
from pluto.infrastructure.database import DatabaseSessionManager
from pluto.infrastructure.observability import setup_logging
from pluto.models import Author, Course
from pluto.services.demo_seed import seed_demo
from pluto.services.loading_runner import LoadingStrategyRunner

logger = logging.getLogger(__name__)


def _report(step: str, result, lines: list[str]) -> int:
    for line in lines:
        logger.info(f"  {line}")
    logger.info(
        f"{step}: {result.round_trips} round trip(s)",
        extra={"strategy": result.strategy.value, "round_trips": result.round_trips},
    )
    return result.round_trips


async def lazy_tags_of_one_course(runner: LoadingStrategyRunner) -> int:
    result = await runner.fetch(
        Course, where=Course.id == 2, strategy=LoadingStrategy.LAZY, single=True,
    )
    course = result.one()
    tags = await result.related(course, "tags")
    return _report("lazy loading", result, [t.name for t in tags])


async def n_plus_one_authors(runner: LoadingStrategyRunner) -> int:
    result = await runner.fetch(Course, strategy=LoadingStrategy.LAZY)
    lines = []
    for course in result:
        author = await result.related(course, "author")
        lines.append(f"{course.name} by {author.name}")
    return _report("N+1 problem", result, lines)


async def eager_authors(runner: LoadingStrategyRunner) -> int:
    result = await runner.fetch(
        Course, paths=["author"], strategy=LoadingStrategy.EAGER,
    )
    lines = []
    for course in result:
        author = await result.related(course, "author")
        lines.append(f"{course.name} by {author.name}")
    return _report("eager loading", result, lines)


async def eager_multiple_levels(runner: LoadingStrategyRunner) -> int:
    result = await runner.fetch(
        Course, paths=["author.address", "tags.moderator"],
        strategy=LoadingStrategy.EAGER,
    )
    lines = []
    for course in result:
        address = await result.related(course, "author.address")
        moderators = await result.related(course, "tags.moderator")
        city = address.city if address else "-"
        names = sorted({m.name for m in moderators if m is not None})
        lines.append(f"{course.name}: {city}; moderated by {', '.join(names) or '-'}")
    return _report("eager loading, multiple levels", result, lines)


async def explicit_free_courses(runner: LoadingStrategyRunner) -> int:
    eager = await runner.fetch(
        Author, where=Author.id == 1, paths=["courses"],
        strategy=LoadingStrategy.EAGER, single=True,
    )
    author = eager.one()
    courses = await eager.related(author, "courses")
    _report("eager author with courses", eager, [c.name for c in courses])

    explicit = await runner.fetch(
        Author, where=Author.id == 1, paths=["courses"],
        strategy=LoadingStrategy.EXPLICIT, single=True,
        path_filters={"courses": Course.full_price == 0},
    )
    author = explicit.one()
    free = await explicit.related(author, "courses")
    return _report("explicit loading, free courses only", explicit, [c.name for c in free])


STEPS = (
    lazy_tags_of_one_course,
    n_plus_one_authors,
    eager_authors,
    eager_multiple_levels,
    explicit_free_courses,
)


async def run_walkthrough(
    manager: DatabaseSessionManager, seed: bool = False,
    lazy_loading_enabled: bool = True, n_plus_one_warning_threshold: int = 5,
) -> dict[str, int]:
    """Run every step; returns round trips per step name."""
    if seed:
        await manager.create_schema()
        async with manager.session() as db:
            await seed_demo(db)

    costs: dict[str, int] = {}
    for step in STEPS:
        async with manager.session() as db:
            runner = LoadingStrategyRunner(
                db,
                lazy_loading_enabled=lazy_loading_enabled,
                n_plus_one_warning_threshold=n_plus_one_warning_threshold,
            )
            costs[step.__name__] = await step(runner)
    return costs


def main(argv: list[str] | None = None) -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Loading strategy walkthrough")
    parser.add_argument("--database-url", default=settings.database_url)
    parser.add_argument(
        "--seed", action="store_true", help="create tables and load demo data first",
    )
    parser.add_argument(
        "--log-format", default="text", choices=["text", "json"],
    )
    args = parser.parse_args(argv)

    setup_logging(settings.log_level, args.log_format)

    async def _run() -> None:
        manager = DatabaseSessionManager(args.database_url, echo=settings.database_echo)
        try:
            await run_walkthrough(
                manager, seed=args.seed,
                lazy_loading_enabled=settings.lazy_loading_enabled,
                n_plus_one_warning_threshold=settings.n_plus_one_warning_threshold,
            )
        finally:
            await manager.dispose()

    asyncio.run(_run())


if __name__ == "__main__":
    main()
