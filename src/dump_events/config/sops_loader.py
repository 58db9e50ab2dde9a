"""
YAML configuration loader.

Supports plain YAML files and SOPS-encrypted YAML files.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)


def _parse_yaml(text: str, source: Path) -> dict[str, Any]:
    """Parse YAML text that must hold a mapping (or nothing)."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {source}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Config file {source} must contain a mapping, got {type(data).__name__}"
        )
    return data


def load_yaml_file(file_path: Path) -> dict[str, Any]:
    """
    Load a plain YAML config file.

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If the file is not a YAML mapping
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Config file not found: {file_path}")

    return _parse_yaml(file_path.read_text(encoding="utf-8"), file_path)


def decrypt_sops_file(file_path: Path) -> dict[str, Any]:
    """
    Decrypt a SOPS-encrypted file and return parsed YAML.

    Args:
        file_path: Path to the encrypted file

    Returns:
        Decrypted configuration as dictionary

    Raises:
        FileNotFoundError: If file doesn't exist
        RuntimeError: If SOPS decryption fails
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Encrypted config file not found: {file_path}")

    try:
        result = subprocess.run(
            ["sops", "-d", str(file_path)],
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as e:
        raise RuntimeError(f"SOPS decryption failed: {e.stderr}") from e
    except FileNotFoundError as e:
        raise RuntimeError(
            "SOPS not installed. Install with: brew install sops (macOS) "
            "or download from https://github.com/getsops/sops/releases"
        ) from e

    return _parse_yaml(result.stdout, file_path)


def is_encrypted_config(file_path: Path) -> bool:
    """Return True for *.enc.yaml / *.enc.yml files."""
    return file_path.name.endswith((".enc.yaml", ".enc.yml"))


def load_config_file(file_path: Path) -> dict[str, Any]:
    """Load a config file, decrypting it with SOPS when it is encrypted."""
    if is_encrypted_config(file_path):
        return decrypt_sops_file(file_path)
    return load_yaml_file(file_path)


def load_config(
    config_path: Optional[Path] = None,
    fallback_to_env: bool = True,
) -> dict[str, Any]:
    """
    Load configuration from a config file or environment variables.

    Priority:
    1. Config file (if provided and exists)
    2. Environment variables (if fallback_to_env=True)

    Args:
        config_path: Path to a plain or SOPS-encrypted YAML file
        fallback_to_env: Whether to fall back to environment variables

    Returns:
        Configuration dictionary
    """
    config = {}

    if config_path and config_path.exists():
        try:
            return load_config_file(config_path)
        except (RuntimeError, ValueError) as e:
            if not fallback_to_env:
                raise
            logger.warning(f"Ignoring config file {config_path}: {e}")

    if fallback_to_env:
        config = {
            "storage": {
                "backend": "sqlite",
                "sqlite_db_path": os.environ.get(
                    "SQLITE_DB_PATH", "data/dump-events.db"
                ),
            },
            "parser": {
                "encoding": os.environ.get("DUMP_ENCODING", "utf-8"),
                "schemas": os.environ.get("DUMP_SCHEMAS", ""),
                "tables": os.environ.get("DUMP_TABLES", ""),
            },
        }

    return config


def check_sops_installed() -> bool:
    """Check if SOPS is installed and accessible."""
    try:
        subprocess.run(
            ["sops", "--version"],
            capture_output=True,
            check=True,
        )
        return True
    except (subprocess.CalledProcessError, FileNotFoundError):
        return False
