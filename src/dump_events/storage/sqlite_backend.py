"""
SQLite storage backend implementation.

Stores replayed dump rows and the binlog coordinate of each replayed dump
in a local SQLite database.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..dump.base import BinlogPosition, RowEvent
from .base import StorageBackend
from .exceptions import QueryError, SchemaError, StorageConnectionError

logger = logging.getLogger(__name__)


# =============================================================================
# SQLite Schema Definitions
# =============================================================================

DUMP_ROWS_SCHEMA = """
CREATE TABLE IF NOT EXISTS dump_rows (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    schema_name TEXT NOT NULL,
    table_name TEXT NOT NULL,
    column_count INTEGER NOT NULL,
    row_values TEXT NOT NULL,  -- JSON array of raw literals
    _ingestion_time TEXT NOT NULL
)
"""

BINLOG_POSITIONS_SCHEMA = """
CREATE TABLE IF NOT EXISTS binlog_positions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    log_file TEXT NOT NULL,
    log_pos TEXT NOT NULL,  -- uint64 does not fit SQLite INTEGER
    _recorded_at TEXT NOT NULL
)
"""

INDEX_DEFINITIONS = [
    "CREATE INDEX IF NOT EXISTS idx_rows_schema ON dump_rows(schema_name)",
    "CREATE INDEX IF NOT EXISTS idx_rows_table ON dump_rows(schema_name, table_name)",
]


# =============================================================================
# Row Value Encoding
# =============================================================================


def _encode_values(values: list[str]) -> str:
    """
    Raw literals are kept as a JSON array.

    ASCII escaping keeps lone surrogates from undecodable BLOB bytes as
    \\udcXX escapes, which json.loads turns back into the same string.
    """
    return json.dumps(values)


def _decode_values(text: str) -> list[str]:
    return json.loads(text)


# =============================================================================
# Validation Helpers
# =============================================================================

VALID_TABLES = frozenset(["dump_rows", "binlog_positions"])


def _validate_identifier(value: str, valid_set: frozenset, name: str) -> str:
    """
    Validate an identifier against a whitelist to prevent SQL injection.

    Args:
        value: The identifier to validate
        valid_set: Set of valid identifiers
        name: Human-readable name for error messages

    Returns:
        The validated identifier

    Raises:
        ValueError: If identifier is not in the valid set
    """
    if value not in valid_set:
        raise ValueError(
            f"Invalid {name}: '{value}'. Must be one of: {sorted(valid_set)}"
        )
    return value


# =============================================================================
# SQLite Backend Implementation
# =============================================================================


class SQLiteBackend(StorageBackend):
    """
    SQLite storage backend for replayed dump events.

    Rows are stored with their raw literal values as a JSON array, keyed by
    schema and table name.
    """

    def __init__(
        self,
        db_path: Path | str = "data/dump-events.db",
        *,
        check_same_thread: bool = False,
        timeout: float = 30.0,
    ):
        """
        Initialize SQLite backend.

        Args:
            db_path: Path to SQLite database file
            check_same_thread: SQLite check_same_thread parameter
            timeout: Connection timeout in seconds
        """
        self.db_path = Path(db_path)
        self._check_same_thread = check_same_thread
        self._timeout = timeout
        self._connection: Optional[sqlite3.Connection] = None

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def backend_type(self) -> str:
        """Return backend type identifier."""
        return "sqlite"

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._connection is None:
            try:
                self._connection = sqlite3.connect(
                    str(self.db_path),
                    check_same_thread=self._check_same_thread,
                    timeout=self._timeout,
                )
                self._connection.row_factory = sqlite3.Row
                logger.debug(f"Connected to SQLite database: {self.db_path}")
            except sqlite3.Error as e:
                raise StorageConnectionError(
                    f"Failed to connect to SQLite database: {e}"
                ) from e
        return self._connection

    @contextmanager
    def _cursor(self):
        """Context manager for database cursor with automatic commit/rollback."""
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            yield cursor
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise QueryError(f"SQLite query failed: {e}") from e
        finally:
            cursor.close()

    def initialize(self) -> None:
        """
        Initialize database with all required tables and indexes.

        Safe to call multiple times - uses IF NOT EXISTS.
        """
        logger.info(f"Initializing SQLite database: {self.db_path}")

        with self._cursor() as cursor:
            cursor.execute(DUMP_ROWS_SCHEMA)
            cursor.execute(BINLOG_POSITIONS_SCHEMA)

            for index_sql in INDEX_DEFINITIONS:
                cursor.execute(index_sql)

        logger.info("SQLite database initialized successfully")

    def close(self) -> None:
        """Close database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            logger.debug("SQLite connection closed")

    def insert_rows(self, rows: list[RowEvent]) -> int:
        """
        Insert row events into the dump_rows table.

        Args:
            rows: Row events from a parsed dump

        Returns:
            Number of rows inserted
        """
        if not rows:
            return 0

        sql = """
            INSERT INTO dump_rows (
                schema_name, table_name, column_count, row_values, _ingestion_time
            ) VALUES (
                :schema_name, :table_name, :column_count, :row_values, :_ingestion_time
            )
        """

        now = datetime.now().astimezone().isoformat()
        converted_rows = [
            {
                "schema_name": row.schema,
                "table_name": row.table,
                "column_count": len(row.values),
                "row_values": _encode_values(row.values),
                "_ingestion_time": now,
            }
            for row in rows
        ]

        with self._cursor() as cursor:
            cursor.executemany(sql, converted_rows)
            # executemany may not set rowcount correctly; use len instead
            return len(converted_rows)

    def get_rows(
        self,
        schema: Optional[str] = None,
        table: Optional[str] = None,
    ) -> list[RowEvent]:
        """
        Read replayed rows back in insertion order.

        Args:
            schema: Only return rows of this schema
            table: Only return rows of this table

        Returns:
            List of RowEvent objects
        """
        conditions = []
        params = {}
        if schema is not None:
            conditions.append("schema_name = :schema_name")
            params["schema_name"] = schema
        if table is not None:
            conditions.append("table_name = :table_name")
            params["table_name"] = table

        sql = "SELECT schema_name, table_name, row_values FROM dump_rows"
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        sql += " ORDER BY id"

        return [
            RowEvent(
                schema=row["schema_name"],
                table=row["table_name"],
                values=_decode_values(row["row_values"]),
            )
            for row in self.query(sql, params)
        ]

    def record_binlog_position(self, name: str, pos: int) -> None:
        """Append a binlog coordinate to binlog_positions."""
        self.execute(
            """
            INSERT INTO binlog_positions (log_file, log_pos, _recorded_at)
            VALUES (:log_file, :log_pos, :_recorded_at)
            """,
            {
                "log_file": name,
                "log_pos": str(pos),
                "_recorded_at": datetime.now().astimezone().isoformat(),
            },
        )
        logger.debug(f"Recorded binlog position {name}:{pos}")

    def get_binlog_position(self) -> Optional[BinlogPosition]:
        """Return the most recently recorded binlog coordinate."""
        result = self.query(
            "SELECT log_file, log_pos FROM binlog_positions ORDER BY id DESC LIMIT 1"
        )
        if not result:
            return None
        return BinlogPosition(name=result[0]["log_file"], pos=int(result[0]["log_pos"]))

    def query(
        self,
        sql: str,
        params: Optional[dict] = None,
    ) -> list[dict]:
        """
        Execute query and return results as list of dictionaries.

        Args:
            sql: SQL query (use :param_name for parameters)
            params: Optional parameter dictionary

        Returns:
            List of result rows as dictionaries
        """
        with self._cursor() as cursor:
            cursor.execute(sql, params or {})
            columns = [desc[0] for desc in cursor.description or []]
            rows = cursor.fetchall()
            return [dict(zip(columns, row)) for row in rows]

    def execute(
        self,
        sql: str,
        params: Optional[dict] = None,
    ) -> int:
        """
        Execute statement (INSERT, UPDATE, DELETE, DDL).

        Args:
            sql: SQL statement
            params: Optional parameter dictionary

        Returns:
            Number of affected rows
        """
        with self._cursor() as cursor:
            cursor.execute(sql, params or {})
            return cursor.rowcount

    def table_exists(self, table_name: str) -> bool:
        """Check if a table exists."""
        sql = """
            SELECT name FROM sqlite_master
            WHERE type='table' AND name=:table_name
        """
        result = self.query(sql, {"table_name": table_name})
        return len(result) > 0

    def get_table_row_count(self, table_name: str) -> int:
        """Get total row count for a table."""
        _validate_identifier(table_name, VALID_TABLES, "table name")
        if not self.table_exists(table_name):
            raise SchemaError(f"Table '{table_name}' does not exist")

        sql = f"SELECT COUNT(*) as count FROM {table_name}"
        result = self.query(sql)
        return result[0]["count"] if result else 0

    def get_table_counts(self) -> dict[str, int]:
        """
        Count replayed rows per `schema`.`table`.

        Returns:
            Mapping of qualified table name to row count
        """
        result = self.query(
            """
            SELECT schema_name, table_name, COUNT(*) as count
            FROM dump_rows
            GROUP BY schema_name, table_name
            ORDER BY schema_name, table_name
            """
        )
        return {
            RowEvent(r["schema_name"], r["table_name"]).qualified_name: r["count"]
            for r in result
        }

    def health_check(self) -> dict:
        """Extended health check with SQLite-specific info."""
        base_check = super().health_check()

        if base_check["healthy"]:
            db_size = self.db_path.stat().st_size if self.db_path.exists() else 0
            tables = self.query(
                "SELECT COUNT(*) as count FROM sqlite_master WHERE type='table'"
            )
            base_check["details"] = {
                "db_path": str(self.db_path),
                "db_size_bytes": db_size,
                "table_count": tables[0]["count"] if tables else 0,
            }

        return base_check
