"""
Storage layer for replaying parsed dump events.

Usage:
    from dump_events.storage import get_backend

    # Backend type and database path from settings
    backend = get_backend()

    # Or explicitly
    backend = get_backend('sqlite', db_path='data/replay.db')

    with get_backend() as backend:
        backend.initialize()
        position = backend.get_binlog_position()
"""

from .base import StorageBackend
from .exceptions import QueryError, SchemaError, StorageConnectionError, StorageError
from .factory import (
    get_backend,
    is_backend_available,
    list_available_backends,
    register_backend,
)

__all__ = [
    # Base classes and exceptions
    "StorageBackend",
    "StorageError",
    "StorageConnectionError",
    "QueryError",
    "SchemaError",
    # Factory functions
    "get_backend",
    "register_backend",
    "list_available_backends",
    "is_backend_available",
]
