"""API Dependencies — one LoadingStrategyRunner per request session."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pluto.config import get_settings
from pluto.infrastructure.database import get_db
from pluto.services.loading_runner import LoadingStrategyRunner


async def get_runner(db: AsyncSession = Depends(get_db)) -> LoadingStrategyRunner:
    settings = get_settings()
    return LoadingStrategyRunner(
        db,
        lazy_loading_enabled=settings.lazy_loading_enabled,
        n_plus_one_warning_threshold=settings.n_plus_one_warning_threshold,
    )
