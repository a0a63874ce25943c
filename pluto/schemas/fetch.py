"""Fetch Schemas — Pydantic models for loading-strategy responses.

Invariants:
    - round_trips is what the database saw for this request's fetch, lazy loads included
    - items hold column values plus only the relations that were requested
"""

from typing import Any

from pydantic import BaseModel, Field

from pluto.core.domain_types import LoadingStrategy


class FetchResponse(BaseModel):
    """One fetch, rendered."""
    entity: str
    strategy: LoadingStrategy
    count: int = Field(ge=0)
    round_trips: int = Field(ge=0)
    items: list[dict[str, Any]]
