"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - RelationPath is a dotted chain of relationship attribute names ("author.address")
    - All valid strategies encoded as an Enum — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: query params and JSON responses serialize without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

EntityName = NewType("EntityName", str)       # mapped class name, e.g. "Course"
RelationPath = NewType("RelationPath", str)   # "tags.moderator"


# ─── Enums ───────────────────────────────────────────────────────

class LoadingStrategy(str, Enum):
    """How related entities reach the caller."""
    LAZY = "lazy"          # on first access, one query per (root, path)
    EAGER = "eager"        # one joined query for roots and every path
    EXPLICIT = "explicit"  # roots, then one batched query per path
