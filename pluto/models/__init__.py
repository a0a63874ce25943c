"""ORM Models — SQLAlchemy declarative models for the course catalogue.

Invariants:
    - All models inherit from Base (db/base.py)
    - Course is the usual root; Author, Tag and Address are reachable from it

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs (ADR: standard SQLAlchemy pattern)
"""

from pluto.models.course import Course, course_tags  # noqa: F401
from pluto.models.author import Author  # noqa: F401
from pluto.models.tag import Tag  # noqa: F401
from pluto.models.address import Address  # noqa: F401
