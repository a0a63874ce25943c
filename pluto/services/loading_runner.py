"""Loading Strategy Runner — fetch roots and their related entities lazily, eagerly or explicitly.

Invariants:
    - Paths and path filters are validated before any query is issued
    - EAGER costs 1 round trip, EXPLICIT costs 1 + distinct paths,
      LAZY costs 1 + distinct (root, path) reads — independent of how many roots match
    - Lazy reads are memoized per (root identity, path) in an explicit map
    - Reading an unpopulated path only queries under LAZY with lazy loading enabled;
      otherwise it raises UnloadedPathError without touching the database

Design Decisions:
    - FetchResult.related() is the only door to related data: a lazy load is a
      visible await, not attribute interception
    - Explicit path queries run one after another in declared order, so result
      assembly is deterministic
    - One runner per session: the session is the unit of work and owns the connection
      whose statements are counted
"""

import logging
from collections import Counter
from typing import Any, Iterator, Mapping, Sequence

from sqlalchemy import ColumnElement
from sqlalchemy.ext.asyncio import AsyncSession

from pluto.core.domain_types import LoadingStrategy
from pluto.core.errors import (
    AmbiguousSingletonError, InvalidPathError, NotFoundError, UnloadedPathError,
)
from pluto.core.relation_paths import (
    parse_paths, populated_paths, resolve_path, split_path, validate_tree,
)
from pluto.infrastructure.entity_store import EntityStore

logger = logging.getLogger(__name__)

Criteria = ColumnElement[bool]


class FetchResult:
    """Roots of one fetch, plus the only way to read their related entities."""

    def __init__(
        self,
        store: EntityStore,
        root_type: type,
        roots: list,
        strategy: LoadingStrategy,
        populated: frozenset[str],
        path_filters: Mapping[str, Criteria],
        round_trips: int,
        lazy_loading_enabled: bool = True,
        n_plus_one_warning_threshold: int = 5,
    ):
        self.roots = roots
        self.strategy = strategy
        self.entity = root_type.__name__
        self.populated_paths = populated
        self.round_trips = round_trips
        self._store = store
        self._root_type = root_type
        self._filters = dict(path_filters)
        self._lazy_enabled = lazy_loading_enabled
        self._warn_at = n_plus_one_warning_threshold
        self._root_ids = {id(r) for r in roots}
        self._memo: dict[tuple[int, str], Any] = {}
        self._lazy_loads: Counter[str] = Counter()

    def __iter__(self) -> Iterator:
        return iter(self.roots)

    def __len__(self) -> int:
        return len(self.roots)

    def one(self):
        """The single root of this result."""
        if not self.roots:
            raise NotFoundError(self.entity)
        if len(self.roots) > 1:
            raise AmbiguousSingletonError(self.entity)
        return self.roots[0]

    def is_loaded(self, root, path: str) -> bool:
        return path in self.populated_paths or (id(root), path) in self._memo

    async def related(self, root, path: str) -> Any:
        """Read a related path off one root, loading it on demand under LAZY."""
        if id(root) not in self._root_ids:
            raise ValueError(f"{root!r} is not a root of this {self.entity} result")
        segments = split_path(path, self.entity)
        path = ".".join(segments)
        if path in self.populated_paths:
            return resolve_path(root, segments)
        key = (id(root), path)
        if key in self._memo:
            return self._memo[key]
        if self.strategy is not LoadingStrategy.LAZY:
            raise UnloadedPathError(self.entity, path, self.strategy.value)
        if not self._lazy_enabled:
            raise UnloadedPathError(
                self.entity, path, self.strategy.value,
                reason="was not loaded and lazy loading is disabled",
            )
        tree = parse_paths([path], self.entity)
        validate_tree(tree, self.entity, self._store.relation_schema())
        head = segments[0]

        with self._store.round_trips.measure() as tally:
            await self._store.load_relation(
                [root], self._root_type, head, tree[head], self._filters,
            )
        self.round_trips += tally.count
        value = resolve_path(root, segments)
        self._memo[key] = value
        self._note_lazy_load(path)
        return value

    def _note_lazy_load(self, path: str) -> None:
        self._lazy_loads[path] += 1
        count = self._lazy_loads[path]
        logger.debug(
            f"Lazy load {self.entity}.{path} ({count})",
            extra={"entity": self.entity, "path": path, "round_trips": self.round_trips},
        )
        if self._warn_at > 0 and count == self._warn_at:
            logger.warning(
                f"Possible N+1: {self.entity}.{path} lazily loaded once per root "
                f"({count} times so far); consider eager or explicit loading",
                extra={"entity": self.entity, "path": path, "strategy": self.strategy.value},
            )


class LoadingStrategyRunner:
    """Fetches entity graphs through one session using a chosen loading strategy."""

    def __init__(
        self,
        db: AsyncSession,
        lazy_loading_enabled: bool = True,
        n_plus_one_warning_threshold: int = 5,
    ):
        self.store = EntityStore(db)
        self.lazy_loading_enabled = lazy_loading_enabled
        self.n_plus_one_warning_threshold = n_plus_one_warning_threshold

    async def fetch(
        self,
        root: type,
        where: Criteria | None = None,
        paths: Sequence[str] = (),
        strategy: LoadingStrategy | str = LoadingStrategy.LAZY,
        single: bool = False,
        path_filters: Mapping[str, Criteria] | None = None,
    ) -> FetchResult:
        """Fetch roots matching `where` and load `paths` the way `strategy` says."""
        strategy = LoadingStrategy(strategy)
        entity = root.__name__
        ordered = list(dict.fromkeys(".".join(split_path(p, entity)) for p in paths))
        tree = parse_paths(ordered, entity)
        validate_tree(tree, entity, self.store.relation_schema())
        filters = dict(path_filters or {})
        for path in filters:
            if path not in ordered:
                raise InvalidPathError(entity, path)

        with self.store.round_trips.measure() as tally:
            if strategy is LoadingStrategy.EAGER:
                roots = await self.store.join(root, tree, where, single, filters)
                populated = populated_paths(tree)
            elif strategy is LoadingStrategy.EXPLICIT:
                roots = await self.store.query(root, where, single)
                for path in ordered:
                    head = path.split(".", 1)[0]
                    await self.store.load_relation(
                        roots, root, head, parse_paths([path])[head], filters,
                    )
                populated = populated_paths(tree)
            else:
                roots = await self.store.query(root, where, single)
                populated = frozenset()

        logger.info(
            f"Fetched {len(roots)} {entity} ({strategy.value}) in {tally.count} round trip(s)",
            extra={
                "entity": entity, "strategy": strategy.value,
                "roots": len(roots), "round_trips": tally.count,
            },
        )
        return FetchResult(
            self.store, root, roots, strategy, populated, filters, tally.count,
            lazy_loading_enabled=self.lazy_loading_enabled,
            n_plus_one_warning_threshold=self.n_plus_one_warning_threshold,
        )
