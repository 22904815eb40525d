"""Pydantic models for UniDB configuration."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import (
    BaseModel,
    Field,
    field_validator,
    model_validator,
    AliasChoices,
    ConfigDict,
)
from pydantic_settings import BaseSettings, SettingsConfigDict


class BackendType(str, Enum):
    """Supported backend variants, keyed by their connection type tag."""
    LDAP = "ldap"
    MYSQL = "my"
    POSTGRESQL = "pg"
    TDS = "tds"
    LMDB = "lmdb"
    SQLITE = "sqlite"


class BackendFamily(str, Enum):
    """Store families a backend variant belongs to."""
    DIRECTORY = "directory"
    SQL = "sql"
    KEY_VALUE = "key_value"


class DatabaseConfig(BaseModel):
    """Configuration of one backend connection."""

    model_config = ConfigDict(populate_by_name=True)

    type: BackendType = Field(validation_alias=AliasChoices("type", "driver"))
    host: Optional[str] = None
    database: Optional[str] = Field(default=None, validation_alias=AliasChoices("database", "db"))
    username: Optional[str] = Field(default=None, validation_alias=AliasChoices("username", "user"))
    password: Optional[str] = Field(default=None, validation_alias=AliasChoices("password", "pass"))
    options: Dict[str, Any] = Field(default_factory=dict)

    @field_validator('options')
    def validate_port_option(cls, v):
        """Validate port number range when a port option is given."""
        port = v.get('port')
        if port is not None and (int(port) < 1 or int(port) > 65535):
            raise ValueError("Port must be between 1 and 65535")
        return v

    @model_validator(mode='after')
    def validate_database_config(self):
        """Validate backend-specific required fields."""
        if self.type in (BackendType.SQLITE, BackendType.LMDB):
            if not (self.database or self.options.get('path')):
                raise ValueError(f"{self.type.value} connections require a 'database' or 'path' option")
        elif self.type == BackendType.LDAP:
            if not self.host:
                raise ValueError("ldap connections require 'host' field")
        else:
            for field in ('host', 'database'):
                if not getattr(self, field):
                    raise ValueError(f"{self.type.value} connections require '{field}' field")
        return self


class UniDBConfig(BaseModel):
    """Main configuration model for UniDB."""
    databases: Dict[str, DatabaseConfig]
    default_database: Optional[str] = None

    @model_validator(mode='after')
    def validate_default_database(self):
        """Ensure default_database exists in databases, defaulting to the first one."""
        if self.default_database and self.default_database not in self.databases:
            raise ValueError(f"default_database '{self.default_database}' not found in databases")
        if not self.default_database and self.databases:
            self.default_database = next(iter(self.databases))
        return self

    def to_connections(self):
        """Build the ordered connection collection described by this configuration."""
        from unidb.db.models import ConnectionDescriptor, ConnectionList

        connections = ConnectionList()
        for alias, db_config in self.databases.items():
            connections.append(ConnectionDescriptor(
                alias=alias,
                type=db_config.type.value,
                host=db_config.host,
                database=db_config.database,
                user=db_config.username,
                password=db_config.password,
                options=dict(db_config.options),
            ))
        return connections


class EnvironmentSettings(BaseSettings):
    """Environment-specific settings."""

    model_config = SettingsConfigDict(env_prefix="UNIDB_", case_sensitive=False)

    log_level: str = Field(default="WARNING")
    config_file: Optional[str] = Field(default=None)
    disabled_backends: str = Field(default="")

    @property
    def disabled_backend_tags(self) -> List[str]:
        """Tags listed in ``UNIDB_DISABLED_BACKENDS``."""
        return [tag.strip() for tag in self.disabled_backends.split(",") if tag.strip()]
