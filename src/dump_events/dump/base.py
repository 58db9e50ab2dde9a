"""
Abstract handler interface and data models for dump parsing.

Provides the capability interface the parser dispatches events to, the
three-way handler outcome, and the event dataclasses produced by a parse.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

# Largest binlog offset accepted (unsigned 64-bit)
MAX_BINLOG_POSITION = 2**64 - 1


class HandlerResult(Enum):
    """Outcome of a handler callback that did not raise."""

    CONTINUE = "continue"  # Event applied
    SKIP = "skip"  # Event deliberately not applied, keep parsing


@dataclass(frozen=True)
class BinlogPosition:
    """
    Replication log coordinate captured from a dump.

    Attributes:
        name: Binlog file name (e.g., 'mysql-bin.000123')
        pos: Byte offset inside the binlog file
    """

    name: str
    pos: int

    def __str__(self) -> str:
        return f"{self.name}:{self.pos}"


@dataclass
class RowEvent:
    """
    One row extracted from an INSERT statement.

    Attributes:
        schema: Schema selected by the most recent USE line ('' if none)
        table: Table name from the INSERT statement
        values: Raw literal text per column, in source column order
    """

    schema: str
    table: str
    values: list[str] = field(default_factory=list)

    @property
    def qualified_name(self) -> str:
        """Return `schema`.`table`, or just `table` when no schema is selected."""
        if self.schema:
            return f"{self.schema}.{self.table}"
        return self.table

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "schema": self.schema,
            "table": self.table,
            "values": list(self.values),
        }


@dataclass
class ParseResult:
    """
    Statistics for a single parse invocation.

    Attributes:
        lines_read: Number of newline-terminated lines classified
        binlog: Captured binlog coordinate, if any
        rows_parsed: Number of row events dispatched to the handler
        events_skipped: Number of events the handler answered with SKIP
        trailing_line_dropped: True if the stream ended with an
            unterminated line, which is never classified
    """

    lines_read: int = 0
    binlog: Optional[BinlogPosition] = None
    rows_parsed: int = 0
    events_skipped: int = 0
    trailing_line_dropped: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary for reporting."""
        return {
            "lines_read": self.lines_read,
            "binlog_name": self.binlog.name if self.binlog else None,
            "binlog_pos": self.binlog.pos if self.binlog else None,
            "rows_parsed": self.rows_parsed,
            "events_skipped": self.events_skipped,
            "trailing_line_dropped": self.trailing_line_dropped,
        }


class ParseHandler(ABC):
    """
    Abstract capability receiving events from the dump parser.

    Implementations return ``None`` or ``HandlerResult.CONTINUE`` once an
    event is applied, ``HandlerResult.SKIP`` to decline it without stopping
    the parse, and raise to abort the parse. Whatever they raise reaches the
    caller of ``parse`` unchanged.

    Any object providing ``binlog`` and ``data`` methods is accepted as a
    handler; subclassing is not required.

    Example:
        class PrintHandler(ParseHandler):
            def binlog(self, name, pos):
                print(name, pos)

            def data(self, schema, table, values):
                print(schema, table, values)
    """

    @abstractmethod
    def binlog(self, name: str, pos: int) -> Optional[HandlerResult]:
        """
        Receive the binlog coordinate of the dump.

        Called at most once per parse.

        Args:
            name: Binlog file name
            pos: Byte offset in the binlog file

        Returns:
            None/CONTINUE if applied, SKIP if declined
        """
        pass

    @abstractmethod
    def data(
        self, schema: str, table: str, values: list[str]
    ) -> Optional[HandlerResult]:
        """
        Receive one row event.

        Args:
            schema: Current schema name ('' before any USE line)
            table: Table name
            values: Raw literal text per column

        Returns:
            None/CONTINUE if applied, SKIP if declined
        """
        pass

    @classmethod
    def __subclasshook__(cls, subclass):
        if cls is ParseHandler:
            if all(
                callable(getattr(subclass, name, None)) for name in ("binlog", "data")
            ):
                return True
        return NotImplemented
