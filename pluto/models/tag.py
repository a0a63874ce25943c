"""Tag ORM — labels courses; an Author may moderate it.

Invariants:
    - moderator_id is nullable (unmoderated tags are common)

Design Decisions:
    - Moderators are Authors: no separate table, no back-reference on Author
"""

from typing import Optional

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pluto.db.base import Base
from pluto.models.course import course_tags


class Tag(Base):
    """Tag entity."""
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    moderator_id: Mapped[int | None] = mapped_column(
        ForeignKey("authors.id"), nullable=True,
    )

    # Relationships
    moderator: Mapped[Optional["Author"]] = relationship("Author", lazy="raise")
    courses: Mapped[list["Course"]] = relationship(
        "Course", secondary=course_tags, back_populates="tags",
        order_by="Course.id", lazy="raise",
    )
