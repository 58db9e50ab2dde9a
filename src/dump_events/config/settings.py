"""
Application settings and configuration management.

Supports loading from:
1. YAML config files (config.yaml)
2. SOPS-encrypted YAML files (config.enc.yaml)
3. Environment variables (fallback)
"""

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


def _split_names(value: Any) -> list[str]:
    """Accept a list or a comma-separated string of names."""
    if not value:
        return []
    if isinstance(value, str):
        return [name.strip() for name in value.split(",") if name.strip()]
    return [str(name) for name in value]


# =============================================================================
# Parser Settings
# =============================================================================


@dataclass
class ParserSettings:
    """
    Configuration for dump parsing and replay.

    schemas/tables restrict which rows are replayed; empty lists select
    everything. Table entries may be bare names or schema.table.
    """

    encoding: str = "utf-8"
    batch_size: int = 1000
    schemas: list[str] = field(default_factory=list)
    tables: list[str] = field(default_factory=list)

    def validate(self) -> list[str]:
        """Validate settings values. Returns list of errors."""
        errors = []

        if self.batch_size < 1:
            errors.append(f"batch_size must be >= 1, got {self.batch_size}")

        try:
            "".encode(self.encoding)
        except LookupError:
            errors.append(f"Unknown encoding: {self.encoding}")

        return errors

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "encoding": self.encoding,
            "batch_size": self.batch_size,
            "schemas": list(self.schemas),
            "tables": list(self.tables),
        }

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "ParserSettings":
        """Create from configuration dictionary."""
        return cls(
            encoding=config.get("encoding", "utf-8"),
            batch_size=config.get("batch_size", 1000),
            schemas=_split_names(config.get("schemas")),
            tables=_split_names(config.get("tables")),
        )

    @classmethod
    def from_env(cls) -> "ParserSettings":
        """Create from environment variables."""

        def safe_int(key: str, default: int) -> int:
            """Safely parse int from env var, using default on error."""
            try:
                return int(os.environ.get(key, str(default)))
            except ValueError:
                return default

        return cls(
            encoding=os.environ.get("DUMP_ENCODING", "utf-8"),
            batch_size=safe_int("DUMP_BATCH_SIZE", 1000),
            schemas=_split_names(os.environ.get("DUMP_SCHEMAS")),
            tables=_split_names(os.environ.get("DUMP_TABLES")),
        )


# =============================================================================
# Main Settings
# =============================================================================


@dataclass
class Settings:
    """Application settings."""

    # Storage Backend Settings
    storage_backend: str = "sqlite"
    sqlite_db_path: str = "data/dump-events.db"

    # Dump parsing and replay
    parser: ParserSettings = field(default_factory=ParserSettings)

    def validate(self) -> list[str]:
        """Validate required settings are present. Returns list of errors."""
        errors = []

        if self.storage_backend != "sqlite":
            errors.append("Only SQLite backend is supported in this version")

        if not self.sqlite_db_path:
            errors.append("storage.sqlite_db_path is required")

        errors.extend(self.parser.validate())

        return errors

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "Settings":
        """Create Settings from configuration dictionary (e.g., from YAML)."""
        storage = config.get("storage") or {}
        parser = config.get("parser") or {}

        return cls(
            storage_backend=storage.get("backend", "sqlite"),
            sqlite_db_path=storage.get("sqlite_db_path", "data/dump-events.db"),
            parser=ParserSettings.from_dict(parser),
        )

    @classmethod
    def from_env(cls) -> "Settings":
        """Create Settings from environment variables."""
        return cls(
            storage_backend="sqlite",
            sqlite_db_path=os.environ.get("SQLITE_DB_PATH", "data/dump-events.db"),
            parser=ParserSettings.from_env(),
        )


# Default config file paths, first existing one wins
DEFAULT_CONFIG_PATHS = (Path("config.enc.yaml"), Path("config.yaml"))


@lru_cache
def get_settings(config_path: Optional[str] = None) -> Settings:
    """
    Get cached settings instance.

    Loads from a YAML config file if available (SOPS-encrypted when the
    name ends in .enc.yaml), otherwise from environment variables.

    Args:
        config_path: Optional path to a config file

    Returns:
        Settings instance
    """
    from .sops_loader import load_config_file

    if config_path:
        candidates = (Path(config_path),)
    else:
        candidates = DEFAULT_CONFIG_PATHS

    for path in candidates:
        if not path.exists():
            continue
        try:
            return Settings.from_dict(load_config_file(path))
        except (RuntimeError, OSError, ValueError) as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            logger.warning("Falling back to environment variables")
            break

    return Settings.from_env()


def clear_settings_cache() -> None:
    """Clear the cached settings (useful for testing)."""
    get_settings.cache_clear()
