"""Entity Store — the storage collaborator behind every loading strategy.

Invariants:
    - query() and join() each issue exactly one SELECT
    - load_relation() issues exactly one SELECT for any number of roots (IN-batched),
      including zero roots, so round-trip counts never depend on the data
    - Related entities are attached with set_committed_value: nothing is marked dirty
    - SQLAlchemy lookup/driver errors are mapped to core errors before leaving this module

Design Decisions:
    - Join keys come from mapper inspection (local_remote_pairs, synchronize_pairs),
      so one loader covers many-to-one, one-to-many, one-to-one and many-to-many
    - Path filters ride on relationship criteria (attr.and_(...)) inside joined loads,
      and on a plain WHERE for the head of a batched load
"""

import logging
from collections import defaultdict
from functools import lru_cache
from typing import Any, Mapping, Sequence

from sqlalchemy import ColumnElement, Select, inspect, select
from sqlalchemy.exc import (
    InterfaceError, MultipleResultsFound, NoResultFound, OperationalError,
)
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapper, RelationshipDirection, joinedload
from sqlalchemy.orm.attributes import set_committed_value

from pluto import models  # noqa: F401  (registers every mapper)
from pluto.core.errors import (
    AmbiguousSingletonError, CollaboratorUnavailableError, ErrorContext,
    NotFoundError,
)
from pluto.core.relation_paths import PathTree, Relation, RelationSchema
from pluto.db.base import Base
from pluto.infrastructure.round_trips import RoundTripCounter

logger = logging.getLogger(__name__)

Criteria = ColumnElement[bool]


@lru_cache
def relation_schema() -> RelationSchema:
    """Relation schema of every mapped class, read from the declarative registry."""
    return {
        mapper.class_.__name__: {
            rel.key: Relation(rel.mapper.class_.__name__, rel.uselist)
            for rel in mapper.relationships
        }
        for mapper in Base.registry.mappers
    }


def joined_options(
    entity: type,
    tree: PathTree,
    filters: Mapping[str, Criteria] | None = None,
    prefix: str = "",
) -> list:
    """Compose joinedload() chains for a path tree, one LEFT OUTER JOIN per relation."""
    filters = filters or {}
    mapper: Mapper = inspect(entity)
    options = []
    for name, subtree in tree.items():
        path = f"{prefix}.{name}" if prefix else name
        rel = mapper.relationships[name]
        attr = rel.class_attribute
        if path in filters:
            attr = attr.and_(filters[path])
        load = joinedload(attr)
        children = joined_options(rel.mapper.class_, subtree, filters, path)
        if children:
            load = load.options(*children)
        options.append(load)
    return options


def _attr_for(mapper: Mapper, column) -> str:
    return mapper.get_property_by_column(column).key


class EntityStore:
    """Reads entities through one AsyncSession and counts every round trip."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.round_trips = RoundTripCounter()

    def relation_schema(self) -> RelationSchema:
        return relation_schema()

    async def query(
        self, entity: type, where: Criteria | None = None, single: bool = False,
    ) -> list:
        """Fetch root entities only."""
        result = await self._execute(self._select_roots(entity, where), entity)
        return self._collect(result.scalars(), entity, single)

    async def join(
        self,
        entity: type,
        tree: PathTree,
        where: Criteria | None = None,
        single: bool = False,
        filters: Mapping[str, Criteria] | None = None,
    ) -> list:
        """Fetch roots with every relation in `tree` joined into the same SELECT."""
        stmt = self._select_roots(entity, where).options(
            *joined_options(entity, tree, filters),
        )
        result = await self._execute(stmt, entity)
        return self._collect(result.unique().scalars(), entity, single)

    async def load_relation(
        self,
        roots: Sequence[Any],
        entity: type,
        name: str,
        tail: PathTree | None = None,
        filters: Mapping[str, Criteria] | None = None,
    ) -> None:
        """Populate relation `name` (plus its tail) on all roots with one SELECT.

        `filters` is keyed by path from the root: the entry for `name` filters the
        batched query itself, deeper entries filter the joined tail.
        """
        filters = filters or {}
        mapper: Mapper = inspect(entity)
        rel = mapper.relationships[name]
        target = rel.mapper
        options = joined_options(target.class_, tail or {}, filters, name)
        criteria = filters.get(name)

        if rel.direction is RelationshipDirection.MANYTOMANY:
            local_col, link_col = rel.synchronize_pairs[0]
            local_attr = _attr_for(mapper, local_col)
            keys = {getattr(root, local_attr) for root in roots}
            stmt = (
                select(link_col, target.class_)
                .join_from(target.class_, rel.secondary, rel.secondaryjoin)
                .where(link_col.in_(sorted(keys)))
                .order_by(*target.primary_key)
                .options(*options)
            )
            if criteria is not None:
                stmt = stmt.where(criteria)
            rows = (await self._execute(stmt, entity, "load")).unique().all()
            grouped: dict[Any, list] = defaultdict(list)
            for key, obj in rows:
                grouped[key].append(obj)
            for root in roots:
                set_committed_value(root, name, grouped.get(getattr(root, local_attr), []))
            return

        local_col, remote_col = rel.local_remote_pairs[0]
        local_attr = _attr_for(mapper, local_col)
        remote_attr = _attr_for(target, remote_col)
        keys = {getattr(root, local_attr) for root in roots} - {None}
        stmt = (
            select(target.class_)
            .where(remote_col.in_(sorted(keys)))
            .order_by(*target.primary_key)
            .options(*options)
        )
        if criteria is not None:
            stmt = stmt.where(criteria)
        related = (await self._execute(stmt, entity, "load")).unique().scalars().all()

        if rel.direction is RelationshipDirection.MANYTOONE:
            by_key = {getattr(obj, remote_attr): obj for obj in related}
            for root in roots:
                set_committed_value(root, name, by_key.get(getattr(root, local_attr)))
            return

        grouped = defaultdict(list)
        for obj in related:
            grouped[getattr(obj, remote_attr)].append(obj)
        for root in roots:
            children = grouped.get(getattr(root, local_attr), [])
            if rel.uselist:
                set_committed_value(root, name, children)
            else:
                set_committed_value(root, name, children[0] if children else None)

    # ─── internals ──────────────────────────────────────────────

    @staticmethod
    def _select_roots(entity: type, where: Criteria | None) -> Select:
        stmt = select(entity).order_by(*inspect(entity).primary_key)
        if where is not None:
            stmt = stmt.where(where)
        return stmt

    @staticmethod
    def _collect(scalars, entity: type, single: bool) -> list:
        if not single:
            return list(scalars.all())
        try:
            return [scalars.one()]
        except NoResultFound:
            raise NotFoundError(entity.__name__) from None
        except MultipleResultsFound:
            raise AmbiguousSingletonError(entity.__name__) from None

    async def _execute(self, stmt, entity: type, operation: str = "query"):
        try:
            await self._track()
            result = await self.db.execute(stmt)
        except (OperationalError, InterfaceError, OSError) as e:
            # OSError covers refused connects and TimeoutError raised by the driver
            logger.error(
                f"Storage unavailable during {operation}: {e}",
                extra={"entity": entity.__name__},
            )
            raise CollaboratorUnavailableError(
                operation, ErrorContext(entity=entity.__name__),
            ) from e
        return result

    async def _track(self) -> None:
        """Keep the counter on the session's current connection."""
        conn = await self.db.connection()
        self.round_trips.attach(conn.sync_connection)
