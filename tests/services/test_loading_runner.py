"""Loading Strategy Runner — round-trip guarantees, memoization, errors and scenarios.

Invariants checked:
    - EAGER is 1 round trip for any number of roots
    - EXPLICIT is 1 + distinct paths for any number of roots
    - LAZY is 1 + distinct (root, path) reads; repeat reads are free
    - Invalid paths fail before any statement reaches the database
"""

import logging

import pytest
from sqlalchemy.exc import InvalidRequestError

from pluto.core.domain_types import LoadingStrategy
from pluto.core.errors import (
    AmbiguousSingletonError, InvalidPathError, NotFoundError, UnloadedPathError,
)
from pluto.models import Author, Course
from pluto.services.loading_runner import LoadingStrategyRunner

ROOT_FILTERS = {
    0: Course.id > 100,
    1: Course.id == 2,
    3: None,
}


# ─── Round-trip guarantees ──────────────────────────────────────

@pytest.mark.parametrize("n_roots", [0, 1, 3])
@pytest.mark.parametrize("paths", [
    [], ["author"], ["tags"], ["author.address", "tags.moderator"],
])
async def test_eager_is_one_round_trip(runner, small_catalogue, n_roots, paths):
    result = await runner.fetch(
        Course, where=ROOT_FILTERS[n_roots], paths=paths,
        strategy=LoadingStrategy.EAGER,
    )
    assert len(result) == n_roots
    assert result.round_trips == 1


@pytest.mark.parametrize("n_roots", [0, 1, 3])
@pytest.mark.parametrize("paths", [
    [], ["author"], ["author", "tags"], ["author", "tags", "tags.moderator"],
])
async def test_explicit_is_one_plus_paths(runner, small_catalogue, n_roots, paths):
    result = await runner.fetch(
        Course, where=ROOT_FILTERS[n_roots], paths=paths,
        strategy=LoadingStrategy.EXPLICIT,
    )
    assert len(result) == n_roots
    assert result.round_trips == 1 + len(paths)


async def test_explicit_counts_duplicate_paths_once(runner, small_catalogue):
    result = await runner.fetch(
        Course, paths=["author", "author", "tags"], strategy="explicit",
    )
    assert result.round_trips == 3


async def test_lazy_fetch_issues_only_root_query(runner, small_catalogue):
    result = await runner.fetch(
        Course, paths=["author", "tags"], strategy=LoadingStrategy.LAZY,
    )
    assert len(result) == 3
    assert result.round_trips == 1
    assert result.populated_paths == frozenset()


async def test_lazy_repeat_access_is_memoized(runner, small_catalogue):
    result = await runner.fetch(Course, where=Course.id == 2, single=True)
    course = result.one()

    first = await result.related(course, "tags")
    second = await result.related(course, "tags")

    assert second is first
    assert result.round_trips == 2
    assert result.is_loaded(course, "tags")
    assert not result.is_loaded(course, "author")


async def test_lazy_n_plus_one(runner, small_catalogue):
    """3 courses, author read per course: 1 + 3 round trips."""
    result = await runner.fetch(Course, strategy=LoadingStrategy.LAZY)
    names = [(await result.related(c, "author")).name for c in result]
    assert names == ["Ada", "Ada", "Brian"]
    assert result.round_trips == 4


async def test_explicit_batches_authors_across_roots(runner, small_catalogue):
    """3 courses by 2 authors: 1 root query + 1 author batch, not 4."""
    result = await runner.fetch(
        Course, paths=["author"], strategy=LoadingStrategy.EXPLICIT,
    )
    names = [(await result.related(c, "author")).name for c in result]
    assert names == ["Ada", "Ada", "Brian"]
    assert result.round_trips == 2


# ─── Scenarios ──────────────────────────────────────────────────

async def test_eager_single_course_with_tags(runner, small_catalogue):
    result = await runner.fetch(
        Course, where=Course.id == 2, paths=["tags"],
        strategy=LoadingStrategy.EAGER, single=True,
    )
    course = result.one()
    tags = await result.related(course, "tags")
    assert [t.name for t in tags] == ["A", "B"]
    assert result.round_trips == 1


async def test_eager_multiple_levels(runner, small_catalogue):
    result = await runner.fetch(
        Course, where=Course.id == 2, paths=["author.address", "tags.moderator"],
        strategy=LoadingStrategy.EAGER, single=True,
    )
    course = result.one()
    address = await result.related(course, "author.address")
    moderators = await result.related(course, "tags.moderator")
    assert address.city == "Oslo"
    assert [m.name if m else None for m in moderators] == ["Brian", None]
    assert result.round_trips == 1


async def test_explicit_multiple_levels_match_eager(runner, small_catalogue):
    result = await runner.fetch(
        Course, paths=["author.address", "tags.moderator"],
        strategy=LoadingStrategy.EXPLICIT,
    )
    by_id = {c.id: c for c in result}
    assert (await result.related(by_id[2], "author.address")).city == "Oslo"
    assert await result.related(by_id[3], "author.address") is None
    moderators = await result.related(by_id[2], "tags.moderator")
    assert [m.name if m else None for m in moderators] == ["Brian", None]
    assert await result.related(by_id[1], "tags") == []
    assert result.round_trips == 3


async def test_lazy_collection_path_is_one_query(runner, small_catalogue):
    result = await runner.fetch(Course, where=Course.id == 2, single=True)
    course = result.one()
    moderators = await result.related(course, "tags.moderator")
    assert [m.name if m else None for m in moderators] == ["Brian", None]
    assert result.round_trips == 2


async def test_explicit_filter_loads_only_free_courses(runner, demo_catalogue):
    result = await runner.fetch(
        Author, where=Author.id == 1, paths=["courses"],
        strategy=LoadingStrategy.EXPLICIT, single=True,
        path_filters={"courses": Course.full_price == 0},
    )
    courses = await result.related(result.one(), "courses")
    assert [c.name for c in courses] == ["Learn LINQ in an Afternoon", "C# Quick Start"]
    assert result.round_trips == 2


async def test_eager_filter_rides_on_the_join(runner, demo_catalogue):
    result = await runner.fetch(
        Author, where=Author.id == 1, paths=["courses"],
        strategy=LoadingStrategy.EAGER, single=True,
        path_filters={"courses": Course.full_price == 0},
    )
    courses = await result.related(result.one(), "courses")
    assert {c.name for c in courses} == {"Learn LINQ in an Afternoon", "C# Quick Start"}
    assert result.round_trips == 1


async def test_eager_author_with_all_courses(runner, demo_catalogue):
    result = await runner.fetch(
        Author, where=Author.id == 1, paths=["courses"],
        strategy=LoadingStrategy.EAGER, single=True,
    )
    courses = await result.related(result.one(), "courses")
    assert len(courses) == 5


# ─── Fail-fast on unpopulated paths ─────────────────────────────

async def test_eager_unnamed_path_fails_fast(runner, small_catalogue):
    result = await runner.fetch(
        Course, where=Course.id == 2, paths=["tags"],
        strategy=LoadingStrategy.EAGER, single=True,
    )
    course = result.one()
    with pytest.raises(UnloadedPathError):
        await result.related(course, "author")
    with pytest.raises(UnloadedPathError):
        await result.related(course, "tags.moderator")
    with pytest.raises(InvalidRequestError):
        course.author  # lazy="raise" on the mapping itself
    assert result.round_trips == 1


async def test_explicit_unnamed_path_fails_fast(runner, small_catalogue):
    result = await runner.fetch(
        Course, paths=["author"], strategy=LoadingStrategy.EXPLICIT,
    )
    with pytest.raises(UnloadedPathError):
        await result.related(result.roots[0], "tags")
    assert result.round_trips == 2


async def test_lazy_disabled_never_queries(fresh_session, small_catalogue):
    runner = LoadingStrategyRunner(fresh_session, lazy_loading_enabled=False)
    result = await runner.fetch(Course, strategy=LoadingStrategy.LAZY)
    with pytest.raises(UnloadedPathError) as exc:
        await result.related(result.roots[0], "author")
    assert "lazy loading is disabled" in exc.value.message
    assert result.round_trips == 1


async def test_related_rejects_foreign_root(runner, small_catalogue):
    result = await runner.fetch(Course, where=Course.id == 1)
    with pytest.raises(ValueError):
        await result.related(Course(id=99, name="x", author_id=1), "author")


# ─── Errors ─────────────────────────────────────────────────────

@pytest.mark.parametrize("strategy", list(LoadingStrategy))
async def test_singleton_not_found(runner, small_catalogue, strategy):
    with pytest.raises(NotFoundError):
        await runner.fetch(
            Course, where=Course.id == 99, paths=["author"],
            strategy=strategy, single=True,
        )


@pytest.mark.parametrize("strategy", list(LoadingStrategy))
async def test_singleton_ambiguous(runner, small_catalogue, strategy):
    with pytest.raises(AmbiguousSingletonError):
        await runner.fetch(
            Course, where=Course.author_id == 1, paths=["tags"],
            strategy=strategy, single=True,
        )


@pytest.mark.parametrize("paths", [["publisher"], ["tags.owner"], ["author..address"], [""]])
async def test_invalid_path_before_any_query(runner, small_catalogue, paths):
    with pytest.raises(InvalidPathError):
        await runner.fetch(Course, paths=paths, strategy=LoadingStrategy.EAGER)
    assert runner.store.round_trips.total == 0


async def test_filter_for_undeclared_path_is_invalid(runner, small_catalogue):
    with pytest.raises(InvalidPathError):
        await runner.fetch(
            Author, paths=["address"], strategy=LoadingStrategy.EXPLICIT,
            path_filters={"courses": Course.full_price == 0},
        )
    assert runner.store.round_trips.total == 0


async def test_lazy_invalid_path_on_access(runner, small_catalogue):
    result = await runner.fetch(Course, where=Course.id == 1)
    with pytest.raises(InvalidPathError):
        await result.related(result.roots[0], "publisher")
    assert result.round_trips == 1


async def test_one_on_multi_root_result_is_ambiguous(runner, small_catalogue):
    result = await runner.fetch(Course)
    with pytest.raises(AmbiguousSingletonError):
        result.one()


# ─── N+1 warning ────────────────────────────────────────────────

async def test_lazy_loop_warns_about_n_plus_one(fresh_session, small_catalogue, caplog):
    runner = LoadingStrategyRunner(fresh_session, n_plus_one_warning_threshold=2)
    result = await runner.fetch(Course)
    with caplog.at_level(logging.WARNING, logger="pluto.services.loading_runner"):
        for course in result:
            await result.related(course, "author")
    warnings = [r for r in caplog.records if "Possible N+1" in r.getMessage()]
    assert len(warnings) == 1
    assert warnings[0].path == "author"
