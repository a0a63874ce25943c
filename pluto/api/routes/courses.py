"""Courses Routes — list or get courses with a chosen loading strategy.

Invariants:
    - include names relation paths from Course ("author", "tags.moderator", ...)
    - Unknown paths are rejected before any query (400 INVALID_PATH)
    - round_trips in the response is the database cost of this request's fetch

Design Decisions:
    - EAGER by default: a web response knows up front what it needs
"""

import logging

from fastapi import APIRouter, Depends, Query

from pluto.api.dependencies import get_runner
from pluto.core.domain_types import LoadingStrategy
from pluto.models.course import Course
from pluto.schemas.fetch import FetchResponse
from pluto.services.fetch_payload import build_fetch_response
from pluto.services.loading_runner import LoadingStrategyRunner

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/courses", tags=["courses"])


@router.get("", response_model=FetchResponse)
async def list_courses(
    strategy: LoadingStrategy = Query(LoadingStrategy.EAGER),
    include: list[str] = Query(default=[]),
    runner: LoadingStrategyRunner = Depends(get_runner),
):
    """All courses, with `include` paths loaded per `strategy`."""
    result = await runner.fetch(Course, paths=include, strategy=strategy)
    return await build_fetch_response(result, include)


@router.get("/{course_id}", response_model=FetchResponse)
async def get_course(
    course_id: int,
    strategy: LoadingStrategy = Query(LoadingStrategy.EAGER),
    include: list[str] = Query(default=[]),
    runner: LoadingStrategyRunner = Depends(get_runner),
):
    """One course (404 if missing)."""
    result = await runner.fetch(
        Course, where=Course.id == course_id, paths=include,
        strategy=strategy, single=True,
    )
    return await build_fetch_response(result, include)
