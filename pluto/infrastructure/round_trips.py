"""Round-Trip Counter — counts statements a session sends to the database.

Invariants:
    - One count per cursor execution (executemany counts once)
    - Attached to a single Connection, never to the Engine: concurrent sessions
      sharing an engine do not see each other's statements
    - measure() reports the delta of one block, nested blocks allowed

Design Decisions:
    - before_cursor_execute over do_orm_execute: batched loader queries and
      joined loads are counted as the database sees them, not as the ORM plans them
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from sqlalchemy import event
from sqlalchemy.engine import Connection

logger = logging.getLogger(__name__)


@dataclass
class Tally:
    """Statements counted inside one measure() block."""
    count: int = 0


class RoundTripCounter:
    """Counts cursor executions on whichever connection it is attached to."""

    def __init__(self):
        self.total = 0
        self._connection: Connection | None = None

    @property
    def connection(self) -> Connection | None:
        return self._connection

    def attach(self, connection: Connection) -> None:
        """Follow a (new) connection; detaches from the previous one."""
        if connection is self._connection:
            return
        self.detach()
        event.listen(connection, "before_cursor_execute", self._on_execute)
        self._connection = connection

    def detach(self) -> None:
        if self._connection is None:
            return
        if event.contains(self._connection, "before_cursor_execute", self._on_execute):
            event.remove(self._connection, "before_cursor_execute", self._on_execute)
        self._connection = None

    @contextmanager
    def measure(self) -> Iterator[Tally]:
        """Yield a Tally that holds the statements issued inside the block."""
        tally = Tally()
        start = self.total
        try:
            yield tally
        finally:
            tally.count = self.total - start

    def _on_execute(
        self, conn, cursor, statement, parameters, context, executemany,
    ) -> None:
        self.total += 1
        logger.debug(
            f"round trip #{self.total}: {statement.splitlines()[0][:120]}",
            extra={"round_trips": self.total},
        )
