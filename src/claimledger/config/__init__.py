"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var, optional_float_env_var
from .errors import ConfigurationError
from .importer import ImportConfig, get_import_config
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "ImportConfig",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_import_config",
    "get_storage_config",
    "optional_env_var",
    "optional_float_env_var",
]
