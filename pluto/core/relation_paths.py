"""Relation Paths — parsing, validation and resolution of dotted relationship paths.

Invariants:
    - A PathTree is a nested dict: relation name -> PathTree of the target entity
    - Validation walks the tree against a RelationSchema and fails on the first unknown name
    - No module here touches the ORM; the schema is handed in by the shell

Design Decisions:
    - Recursive descent over a tree, not string matching: "tags.moderator" and "tags"
      share the "tags" node, so eager joins are composed once per relation
    - resolve_path maps over collections: "tags.moderator" on a course yields one
      moderator (or None) per tag
"""

from typing import Any, Iterable, Mapping, NamedTuple

from pluto.core.errors import InvalidPathError

PathTree = dict[str, "PathTree"]


class Relation(NamedTuple):
    """One relationship of an entity, as seen by the pure core."""
    target: str
    many: bool


RelationSchema = Mapping[str, Mapping[str, Relation]]


def split_path(path: str, entity: str = "?") -> list[str]:
    """Split "author.address" into segments; empty segments are invalid."""
    segments = path.split(".")
    if not path or any(not s.strip() for s in segments):
        raise InvalidPathError(entity, path)
    return [s.strip() for s in segments]


def parse_paths(paths: Iterable[str], entity: str = "?") -> PathTree:
    """Fold dotted paths into a single PathTree."""
    tree: PathTree = {}
    for path in paths:
        _insert(tree, split_path(path, entity))
    return tree


def _insert(tree: PathTree, segments: list[str]) -> None:
    if not segments:
        return
    _insert(tree.setdefault(segments[0], {}), segments[1:])


def validate_tree(
    tree: PathTree, entity: str, schema: RelationSchema, prefix: str = "",
) -> None:
    """Raise InvalidPathError for the first relation name not on its entity."""
    relations = schema.get(entity, {})
    for name, subtree in tree.items():
        path = f"{prefix}.{name}" if prefix else name
        relation = relations.get(name)
        if relation is None:
            raise InvalidPathError(entity, path)
        validate_tree(subtree, relation.target, schema, path)


def populated_paths(tree: PathTree, prefix: str = "") -> frozenset[str]:
    """Every path a tree loads, prefixes included."""
    found: set[str] = set()
    for name, subtree in tree.items():
        path = f"{prefix}.{name}" if prefix else name
        found.add(path)
        found |= populated_paths(subtree, path)
    return frozenset(found)


def resolve_path(value: Any, segments: list[str]) -> Any:
    """Read a loaded path off an entity. Collections are mapped, None stops the walk."""
    if value is None or not segments:
        return value
    if isinstance(value, list):
        return [resolve_path(item, segments) for item in value]
    return resolve_path(getattr(value, segments[0]), segments[1:])
