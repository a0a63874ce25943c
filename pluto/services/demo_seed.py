"""Demo Seed — deterministic course catalogue for the walkthrough and local runs.

Invariants:
    - Fixed ids: course 2 is "C# Intermediate" with tags c# and oop
    - Author 1 has two free courses (full_price == 0) and an address
    - Seeding an already-seeded database is a no-op
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pluto.models import Address, Author, Course, Tag

logger = logging.getLogger(__name__)

# id, name
AUTHORS = [
    (1, "Mosh Hamedani"),
    (2, "Anthony Alicea"),
    (3, "Eric Wise"),
    (4, "Tom Owsiany"),
    (5, "John Smith"),
]

# id, author_id, street, city
ADDRESSES = [
    (1, 1, "12 Harbour Street", "Sydney"),
    (2, 2, "400 Lake Avenue", "Chicago"),
]

# id, name, moderator_id
TAGS = [
    (1, "c#", 1),
    (2, "angularjs", 2),
    (3, "javascript", 2),
    (4, "nodejs", None),
    (5, "oop", None),
    (6, "linq", 1),
]

# id, name, author_id, level, full_price, tag ids
COURSES = [
    (1, "C# Basics", 1, 1, 49.0, [1, 5]),
    (2, "C# Intermediate", 1, 2, 49.0, [1, 5]),
    (3, "C# Advanced", 1, 3, 69.0, [1]),
    (4, "Javascript: Understanding the Weird Parts", 2, 2, 149.0, [3]),
    (5, "Learn and Understand AngularJS", 2, 2, 99.0, [2]),
    (6, "Learn and Understand NodeJS", 2, 2, 149.0, [4]),
    (7, "Programming for Complete Beginners", 3, 1, 45.0, [1]),
    (8, "A 16 Hour C# Course with Visual Studio 2013", 4, 3, 150.0, [1]),
    (9, "Learn JavaScript Through Visual Studio 2013", 4, 2, 20.0, [3]),
    (10, "Learn LINQ in an Afternoon", 1, 1, 0.0, [1, 6]),
    (11, "C# Quick Start", 1, 1, 0.0, [1]),
]


async def seed_demo(db: AsyncSession) -> bool:
    """Insert the demo catalogue. Returns False if authors already exist."""
    existing = await db.scalar(select(func.count()).select_from(Author))
    if existing:
        logger.info(f"Demo data present ({existing} authors), skipping seed")
        return False

    authors = {aid: Author(id=aid, name=name) for aid, name in AUTHORS}
    tags = {
        tid: Tag(id=tid, name=name, moderator_id=mod)
        for tid, name, mod in TAGS
    }
    db.add_all(authors.values())
    db.add_all(tags.values())
    db.add_all(
        Address(id=adid, author_id=aid, street=street, city=city)
        for adid, aid, street, city in ADDRESSES
    )
    for cid, name, aid, level, price, tag_ids in COURSES:
        db.add(Course(
            id=cid, name=name, author_id=aid, level=level, full_price=price,
            tags=[tags[t] for t in tag_ids],
        ))
    await db.commit()
    logger.info(
        f"Seeded {len(AUTHORS)} authors, {len(COURSES)} courses, {len(TAGS)} tags",
    )
    return True
