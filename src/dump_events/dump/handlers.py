"""
Ready-made ParseHandler implementations.

- LoggingHandler: logs and counts events, applies nothing
- CollectingHandler: keeps events in memory
- ReplayHandler: replays events into a storage backend

CollectingHandler and ReplayHandler accept schema/table filters; events
outside the filter are answered with HandlerResult.SKIP.
"""

import logging
from typing import TYPE_CHECKING, Iterable, Optional

from ..storage.exceptions import StorageError
from .base import BinlogPosition, HandlerResult, ParseHandler, RowEvent
from .exceptions import HandlerError

if TYPE_CHECKING:
    from ..storage.base import StorageBackend

logger = logging.getLogger(__name__)


def is_selected(
    schema: str,
    table: str,
    schemas: Optional[frozenset[str]],
    tables: Optional[frozenset[str]],
) -> bool:
    """
    Check a row against schema/table filters.

    A table filter entry matches either the bare table name or the
    qualified ``schema.table`` name. Empty or None filters select everything.
    """
    if schemas and schema not in schemas:
        return False
    if tables and table not in tables and f"{schema}.{table}" not in tables:
        return False
    return True


def _to_filter(names: Optional[Iterable[str]]) -> Optional[frozenset[str]]:
    if not names:
        return None
    return frozenset(names)


class LoggingHandler(ParseHandler):
    """
    Handler that only logs events.

    Useful for validating a dump without applying it anywhere.
    """

    def __init__(self, level: int = logging.DEBUG):
        self.level = level
        self.binlog_position: Optional[BinlogPosition] = None
        self.row_count = 0
        self.table_counts: dict[str, int] = {}

    def binlog(self, name: str, pos: int) -> HandlerResult:
        self.binlog_position = BinlogPosition(name=name, pos=pos)
        logger.log(self.level, f"Binlog position: {name}:{pos}")
        return HandlerResult.CONTINUE

    def data(self, schema: str, table: str, values: list[str]) -> HandlerResult:
        self.row_count += 1
        qualified = RowEvent(schema, table).qualified_name
        self.table_counts[qualified] = self.table_counts.get(qualified, 0) + 1
        logger.log(self.level, f"Row {qualified}: {len(values)} values")
        return HandlerResult.CONTINUE


class CollectingHandler(ParseHandler):
    """
    Handler that keeps every selected event in memory.

    Usage:
        handler = CollectingHandler(tables=["users"])
        parse(stream, handler)
        for row in handler.rows:
            print(row.table, row.values)
    """

    def __init__(
        self,
        schemas: Optional[Iterable[str]] = None,
        tables: Optional[Iterable[str]] = None,
    ):
        self.schemas = _to_filter(schemas)
        self.tables = _to_filter(tables)
        self.binlog_position: Optional[BinlogPosition] = None
        self.rows: list[RowEvent] = []
        self.skipped = 0

    def binlog(self, name: str, pos: int) -> HandlerResult:
        self.binlog_position = BinlogPosition(name=name, pos=pos)
        return HandlerResult.CONTINUE

    def data(self, schema: str, table: str, values: list[str]) -> HandlerResult:
        if not is_selected(schema, table, self.schemas, self.tables):
            self.skipped += 1
            return HandlerResult.SKIP
        self.rows.append(RowEvent(schema=schema, table=table, values=values))
        return HandlerResult.CONTINUE


class ReplayHandler(ParseHandler):
    """
    Handler that replays a dump into a storage backend.

    Rows are buffered and written in batches. The binlog coordinate is only
    recorded by ``finish()``, after the last batch, so an aborted replay never
    leaves a position to resume from. Call ``finish()`` after a successful
    parse, or use the handler as a context manager. Storage failures abort
    the parse with HandlerError.

    Usage:
        with get_backend('sqlite', db_path='replay.db') as backend:
            backend.initialize()
            with ReplayHandler(backend, tables=['app.users']) as handler:
                parse_dump_file('dump.sql', handler)
    """

    def __init__(
        self,
        backend: "StorageBackend",
        batch_size: int = 1000,
        schemas: Optional[Iterable[str]] = None,
        tables: Optional[Iterable[str]] = None,
    ):
        """
        Initialize replay handler.

        Args:
            backend: Initialized storage backend to write to
            batch_size: Rows buffered before each insert
            schemas: Only replay rows of these schemas
            tables: Only replay these tables (name or schema.table)
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size must be > 0, got {batch_size}")

        self.backend = backend
        self.batch_size = batch_size
        self.schemas = _to_filter(schemas)
        self.tables = _to_filter(tables)
        self.rows_written = 0
        self.rows_skipped = 0
        self.binlog_position: Optional[BinlogPosition] = None
        self._batch: list[RowEvent] = []

    def binlog(self, name: str, pos: int) -> HandlerResult:
        self.binlog_position = BinlogPosition(name=name, pos=pos)
        logger.info(f"Replaying dump taken at binlog position {name}:{pos}")
        return HandlerResult.CONTINUE

    def data(self, schema: str, table: str, values: list[str]) -> HandlerResult:
        if not is_selected(schema, table, self.schemas, self.tables):
            self.rows_skipped += 1
            return HandlerResult.SKIP

        self._batch.append(RowEvent(schema=schema, table=table, values=values))
        if len(self._batch) >= self.batch_size:
            self.flush()
        return HandlerResult.CONTINUE

    def flush(self) -> int:
        """
        Write buffered rows to the backend.

        Returns:
            Number of rows written by this call

        Raises:
            HandlerError: If the backend insert fails
        """
        if not self._batch:
            return 0

        batch, self._batch = self._batch, []
        try:
            inserted = self.backend.insert_rows(batch)
        except StorageError as e:
            raise HandlerError(
                f"Failed to insert batch of {len(batch)} rows: {e}",
                event=batch[0].qualified_name,
            ) from e

        self.rows_written += inserted
        logger.info(f"Flushed {inserted} rows ({self.rows_written} total)")
        return inserted

    def finish(self) -> None:
        """
        Write the remaining rows, then record the dump's binlog coordinate.

        Raises:
            HandlerError: If the insert or the position write fails
        """
        self.flush()
        if self.binlog_position is None:
            return

        name, pos = self.binlog_position.name, self.binlog_position.pos
        try:
            self.backend.record_binlog_position(name, pos)
        except StorageError as e:
            raise HandlerError(
                f"Failed to record binlog position: {e}", event=f"{name}:{pos}"
            ) from e
        logger.info(f"Recorded binlog position {name}:{pos}")

    @property
    def pending(self) -> int:
        """Number of rows buffered but not yet written."""
        return len(self._batch)

    def __enter__(self) -> "ReplayHandler":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        # Only a successful parse is committed
        if exc_type is None:
            self.finish()
