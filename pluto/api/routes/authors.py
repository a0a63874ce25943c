"""Authors Routes — authors and their courses, including free-course filtering.

Invariants:
    - free_only narrows the "courses" path to full_price == 0 and requires it in include
    - The filter rides on the related query, never on the author query itself
"""

import logging

from fastapi import APIRouter, Depends, Query

from pluto.api.dependencies import get_runner
from pluto.core.domain_types import LoadingStrategy
from pluto.models.author import Author
from pluto.models.course import Course
from pluto.schemas.fetch import FetchResponse
from pluto.services.fetch_payload import build_fetch_response
from pluto.services.loading_runner import LoadingStrategyRunner

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/authors", tags=["authors"])


def _course_filters(free_only: bool) -> dict:
    return {"courses": Course.full_price == 0} if free_only else {}


@router.get("", response_model=FetchResponse)
async def list_authors(
    strategy: LoadingStrategy = Query(LoadingStrategy.EAGER),
    include: list[str] = Query(default=[]),
    free_only: bool = False,
    runner: LoadingStrategyRunner = Depends(get_runner),
):
    result = await runner.fetch(
        Author, paths=include, strategy=strategy,
        path_filters=_course_filters(free_only),
    )
    return await build_fetch_response(result, include)


@router.get("/{author_id}", response_model=FetchResponse)
async def get_author(
    author_id: int,
    strategy: LoadingStrategy = Query(LoadingStrategy.EXPLICIT),
    include: list[str] = Query(default=[]),
    free_only: bool = False,
    runner: LoadingStrategyRunner = Depends(get_runner),
):
    """One author; with free_only, only the author's free courses are loaded."""
    result = await runner.fetch(
        Author, where=Author.id == author_id, paths=include,
        strategy=strategy, single=True, path_filters=_course_filters(free_only),
    )
    return await build_fetch_response(result, include)
