"""Fetch Payload — turn a FetchResult into JSON-ready dicts.

Invariants:
    - Every requested path is read through FetchResult.related() first, so LAZY
      results pay their on-demand loads here and the count lands in round_trips
    - Only relations in the requested tree are serialized; nothing else is touched

Design Decisions:
    - Columns read from the mapper, not hand-listed per entity: one renderer for all roots
"""

from typing import Any, Sequence

from sqlalchemy import inspect

from pluto.core.relation_paths import PathTree, parse_paths
from pluto.schemas.fetch import FetchResponse
from pluto.services.loading_runner import FetchResult


def to_payload(obj: Any, tree: PathTree) -> dict[str, Any]:
    """Columns of `obj` plus the relations named in `tree`, recursively."""
    data = {
        attr.key: getattr(obj, attr.key)
        for attr in inspect(obj).mapper.column_attrs
    }
    for name, subtree in tree.items():
        value = getattr(obj, name)
        if isinstance(value, list):
            data[name] = [to_payload(item, subtree) for item in value]
        elif value is None:
            data[name] = None
        else:
            data[name] = to_payload(value, subtree)
    return data


async def build_fetch_response(
    result: FetchResult, paths: Sequence[str],
) -> FetchResponse:
    """Load (if lazy) and render every requested path of every root."""
    tree = parse_paths(paths, result.entity)
    for root in result:
        for path in dict.fromkeys(paths):
            await result.related(root, path)
    return FetchResponse(
        entity=result.entity,
        strategy=result.strategy,
        count=len(result),
        round_trips=result.round_trips,
        items=[to_payload(root, tree) for root in result],
    )
