"""
Storage backend factory.

Resolves a backend name to a replay target, loading backend modules
on first use.
"""

import logging
from pathlib import Path
from typing import Optional

from .base import StorageBackend
from .exceptions import StorageError

logger = logging.getLogger(__name__)

# Backends known to the factory, filled lazily
_BACKEND_REGISTRY: dict[str, type[StorageBackend]] = {}

KNOWN_BACKENDS = ("sqlite",)


def register_backend(backend_type: str, backend_class: type[StorageBackend]) -> None:
    """
    Register a storage backend class.

    Args:
        backend_type: Backend identifier (e.g., 'sqlite')
        backend_class: Class implementing StorageBackend interface

    Raises:
        TypeError: If backend_class doesn't inherit from StorageBackend
    """
    if not issubclass(backend_class, StorageBackend):
        raise TypeError(
            f"Backend class must inherit from StorageBackend, "
            f"got {backend_class.__name__}"
        )

    backend_type = backend_type.lower()
    if backend_type in _BACKEND_REGISTRY:
        logger.warning(f"Overwriting existing storage backend '{backend_type}'")

    _BACKEND_REGISTRY[backend_type] = backend_class
    logger.debug(f"Registered storage backend: {backend_type}")


def get_backend(
    backend_type: Optional[str] = None,
    **kwargs,
) -> StorageBackend:
    """
    Create a storage backend to replay dump events into.

    Args:
        backend_type: Backend type ('sqlite'). If None, read from settings.
        **kwargs: Arguments passed to the backend constructor.
                  For SQLite: db_path. Defaults come from settings.

    Returns:
        StorageBackend instance (call initialize() before use).

    Raises:
        StorageError: If backend type is unknown or construction fails.

    Examples:
        backend = get_backend()
        backend = get_backend('sqlite', db_path='data/replay.db')
    """
    if backend_type is None:
        from ..config.settings import get_settings

        backend_type = get_settings().storage_backend

    backend_type = backend_type.lower()

    if backend_type not in _BACKEND_REGISTRY:
        _load_backend(backend_type)

    if backend_type not in _BACKEND_REGISTRY:
        available = list(_BACKEND_REGISTRY.keys()) or ["none"]
        raise StorageError(
            f"Unknown storage backend: '{backend_type}'. "
            f"Available backends: {', '.join(available)}"
        )

    if not kwargs:
        kwargs = _get_default_kwargs(backend_type)

    try:
        backend = _BACKEND_REGISTRY[backend_type](**kwargs)
    except (TypeError, ValueError, OSError) as e:
        raise StorageError(f"Failed to create {backend_type} backend: {e}") from e

    logger.info(f"Created {backend_type} storage backend")
    return backend


def _load_backend(backend_type: str) -> None:
    """Import and register a known backend implementation."""
    if backend_type == "sqlite":
        from .sqlite_backend import SQLiteBackend

        register_backend("sqlite", SQLiteBackend)


def _get_default_kwargs(backend_type: str) -> dict:
    """Constructor arguments taken from settings."""
    from ..config.settings import get_settings

    settings = get_settings()

    if backend_type == "sqlite":
        return {"db_path": Path(settings.sqlite_db_path)}
    return {}


def list_available_backends() -> list[str]:
    """
    List all backend types that can be created.

    Returns:
        List of backend type identifiers.
    """
    for backend_type in KNOWN_BACKENDS:
        if backend_type not in _BACKEND_REGISTRY:
            _load_backend(backend_type)

    return list(_BACKEND_REGISTRY.keys())


def is_backend_available(backend_type: str) -> bool:
    """
    Check if a specific backend is available.

    Args:
        backend_type: Backend type to check

    Returns:
        True if backend can be loaded, False otherwise.
    """
    backend_type = backend_type.lower()

    if backend_type not in _BACKEND_REGISTRY:
        _load_backend(backend_type)

    return backend_type in _BACKEND_REGISTRY
