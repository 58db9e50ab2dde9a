"""
Replay target interface.

A StorageBackend receives what a dump parse produced: batches of row
events and the binlog coordinate replication should resume from.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..dump.base import BinlogPosition, RowEvent
from .exceptions import StorageError


class StorageBackend(ABC):
    """
    Interface every replay target implements.

    Failures surface as StorageError subclasses; ReplayHandler turns them
    into HandlerError so a replay stops at the first failed write.
    """

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Short identifier used by the factory (e.g., 'sqlite')."""
        pass

    @abstractmethod
    def initialize(self) -> None:
        """Create the replay tables. Must be idempotent."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the connection, if any."""
        pass

    @abstractmethod
    def insert_rows(self, rows: list[RowEvent]) -> int:
        """
        Store a batch of row events, keeping their order.

        Args:
            rows: Row events as dispatched by the parser

        Returns:
            Number of rows stored

        Raises:
            StorageError: If the batch could not be written
        """
        pass

    @abstractmethod
    def record_binlog_position(self, name: str, pos: int) -> None:
        """
        Remember the coordinate a dump was taken at.

        Offsets span the full unsigned 64-bit range.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def get_binlog_position(self) -> Optional[BinlogPosition]:
        """Latest recorded coordinate, or None before the first replay."""
        pass

    @abstractmethod
    def query(self, sql: str, params: Optional[dict] = None) -> list[dict]:
        """Run a SELECT with :named parameters; one dict per result row."""
        pass

    @abstractmethod
    def execute(self, sql: str, params: Optional[dict] = None) -> int:
        """Run a write or DDL statement; returns the affected row count."""
        pass

    @abstractmethod
    def table_exists(self, table_name: str) -> bool:
        pass

    @abstractmethod
    def get_table_row_count(self, table_name: str) -> int:
        """
        Count rows of one of the backend's own tables.

        Raises:
            ValueError: If the name is not a replay table
            SchemaError: If the table has not been created yet
        """
        pass

    def health_check(self) -> dict:
        """
        Check that the backend answers queries.

        Returns:
            Dictionary with keys healthy, backend_type, message, details
        """
        status = {"healthy": True, "backend_type": self.backend_type, "details": {}}
        try:
            self.query("SELECT 1 AS ok")
        except StorageError as e:
            status.update(
                healthy=False,
                message=f"Health check failed: {e}",
                details={"error": str(e)},
            )
        else:
            status["message"] = "Backend is operational"
        return status

    def __enter__(self) -> "StorageBackend":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
