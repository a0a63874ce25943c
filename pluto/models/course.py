"""Course ORM — the root entity of most loading examples.

Invariants:
    - author_id is non-nullable and must resolve to an existing Author
    - tags is many-to-many through course_tags (zero or more)
    - full_price == 0 marks a free course

Design Decisions:
    - lazy="raise" on every relationship: unloaded access fails fast instead of
      issuing hidden IO, so each strategy's round trips stay countable
    - tags ordered by Tag.id: joined and batched loads return the same order
"""

from sqlalchemy import Column, Float, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pluto.db.base import Base

course_tags = Table(
    "course_tags",
    Base.metadata,
    Column("course_id", ForeignKey("courses.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Course(Base):
    """Course entity — written by one Author, labelled by Tags."""
    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    full_price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    author_id: Mapped[int] = mapped_column(
        ForeignKey("authors.id"), nullable=False, index=True,
    )

    # Relationships
    author: Mapped["Author"] = relationship(
        "Author", back_populates="courses", lazy="raise",
    )
    tags: Mapped[list["Tag"]] = relationship(
        "Tag", secondary=course_tags, back_populates="courses",
        order_by="Tag.id", lazy="raise",
    )
