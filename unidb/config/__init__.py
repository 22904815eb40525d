"""Configuration management for UniDB."""

from unidb.config.models import (
    BackendType,
    BackendFamily,
    DatabaseConfig,
    UniDBConfig,
    EnvironmentSettings,
)
from unidb.config.parser import (
    ConfigParser,
    load_config,
    load_connections,
    create_sample_config,
)

__all__ = [
    # Models
    "BackendType",
    "BackendFamily",
    "DatabaseConfig",
    "UniDBConfig",
    "EnvironmentSettings",
    # Parser
    "ConfigParser",
    "load_config",
    "load_connections",
    "create_sample_config",
]
