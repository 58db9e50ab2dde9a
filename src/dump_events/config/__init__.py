"""Configuration module."""

from .settings import ParserSettings, Settings, clear_settings_cache, get_settings
from .sops_loader import (
    check_sops_installed,
    decrypt_sops_file,
    is_encrypted_config,
    load_config,
    load_config_file,
    load_yaml_file,
)

__all__ = [
    # Settings
    "Settings",
    "ParserSettings",
    "get_settings",
    "clear_settings_cache",
    # Config loading
    "load_config",
    "load_config_file",
    "load_yaml_file",
    "decrypt_sops_file",
    "check_sops_installed",
    "is_encrypted_config",
]
