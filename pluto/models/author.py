"""Author ORM — writes courses, optionally has an address, may moderate tags.

Invariants:
    - courses is a back-reference only (Course.author_id owns the link)
    - address is optional and one-to-one (Address.author_id is unique)
"""

from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pluto.db.base import Base


class Author(Base):
    """Author entity."""
    __tablename__ = "authors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Relationships
    courses: Mapped[list["Course"]] = relationship(
        "Course", back_populates="author", order_by="Course.id", lazy="raise",
    )
    address: Mapped[Optional["Address"]] = relationship(
        "Address", back_populates="author", uselist=False, lazy="raise",
    )
