"""Loading of UniDB connection files.

A connection file is YAML with a ``databases`` mapping keyed by alias.
Aliases must be unique, both within one file and across the files pulled in
through ``include:``. String values may reference the environment as
``${VAR}`` or ``${VAR:-default}``.
"""

import logging
import os
import re
from collections.abc import Hashable
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Union

import yaml
from pydantic import ValidationError
from yaml.constructor import ConstructorError
from yaml.nodes import MappingNode

from unidb.config.models import EnvironmentSettings, UniDBConfig
from unidb.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Searched in order, relative to the working directory
DEFAULT_CONFIG_FILES = ("unidb.yaml", "unidb.yml", "config/unidb.yaml")

ENV_REFERENCE = re.compile(r'\$\{([^}]+)\}')


class UniqueKeyLoader(yaml.SafeLoader):
    """Safe loader that refuses mappings with a repeated key."""

    def construct_mapping(self, node: MappingNode, deep: bool = False) -> Dict[Any, Any]:
        seen: Dict[Any, Any] = {}
        for key_node, _ in node.value:
            # Keys pulled in through ``<<`` merges may be overridden
            if key_node.tag == 'tag:yaml.org,2002:merge':
                continue
            key = self.construct_object(key_node, deep=deep)
            if not isinstance(key, Hashable):
                continue
            if key in seen:
                raise ConstructorError(
                    "while constructing a mapping", node.start_mark,
                    f"found duplicate key '{key}' (first defined {seen[key]})", key_node.start_mark,
                )
            seen[key] = key_node.start_mark
        return super().construct_mapping(node, deep=deep)


def interpolate(value: Any, where: str = "") -> Any:
    """Resolve environment references in every string of ``value``.

    Raises:
        ConfigurationError: If a reference without a default names an unset
            variable. The message names the setting it appeared in.
    """
    if isinstance(value, dict):
        return {key: interpolate(item, f"{where}.{key}" if where else str(key)) for key, item in value.items()}
    if isinstance(value, list):
        return [interpolate(item, f"{where}[{index}]") for index, item in enumerate(value)]
    if not isinstance(value, str):
        return value

    def resolve(match: "re.Match[str]") -> str:
        name, has_default, default = match.group(1).partition(':-')
        resolved = os.getenv(name.strip())
        if resolved is not None:
            return resolved
        if has_default:
            return default.strip()
        raise ConfigurationError(
            f"Environment variable '{name.strip()}' used by '{where}' is not set",
            details={'setting': where, 'variable': name.strip()},
        )

    return ENV_REFERENCE.sub(resolve, value)


class ConfigParser:
    """Reads connection files into a validated ``UniDBConfig``."""

    def __init__(self, settings: Optional[EnvironmentSettings] = None) -> None:
        self.settings = settings or EnvironmentSettings()

    def locate(self, config_path: Optional[PathLike] = None) -> Path:
        """Pick the connection file to load.

        An explicit path wins, then ``UNIDB_CONFIG_FILE``, then the default
        file names in the working directory.
        """
        if config_path:
            path = Path(config_path)
            if not path.is_file():
                raise ConfigurationError(f"Configuration file '{config_path}' not found")
            return path

        candidates: List[Path] = []
        if self.settings.config_file:
            candidates.append(Path(self.settings.config_file))
        candidates.extend(Path.cwd() / name for name in DEFAULT_CONFIG_FILES)

        for candidate in candidates:
            if candidate.is_file():
                return candidate
        raise ConfigurationError(
            "No configuration file found; looked for "
            + ", ".join(str(candidate) for candidate in candidates)
        )

    def load_config(self, config_path: Optional[PathLike] = None) -> UniDBConfig:
        """Load, interpolate and validate a connection file.

        Raises:
            ConfigurationError: If the file is missing, malformed, repeats an
                alias, references an unset variable or fails validation.
        """
        path = self.locate(config_path)
        document = self._read_document(path, set())
        document = interpolate(document)

        try:
            config = UniDBConfig(**document)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration in '{path}': {e}") from e

        logger.debug(f"Loaded {len(config.databases)} connection(s) from {path}")
        return config

    def load_connections(self, config_path: Optional[PathLike] = None):
        """Load a connection file straight into an ordered ``ConnectionList``."""
        return self.load_config(config_path).to_connections()

    def _read_document(self, path: Path, visiting: Set[Path]) -> Dict[str, Any]:
        resolved = path.resolve()
        if resolved in visiting:
            raise ConfigurationError(f"Include cycle through '{path}'")

        try:
            with open(path, 'r', encoding='utf-8') as file:
                document = yaml.load(file, Loader=UniqueKeyLoader)
        except FileNotFoundError as e:
            raise ConfigurationError(f"Configuration file '{path}' not found") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in '{path}': {e}") from e

        if not document:
            raise ConfigurationError(f"Configuration file '{path}' is empty")
        if not isinstance(document, dict):
            raise ConfigurationError(f"Configuration file '{path}' must contain a mapping")

        includes = document.pop('include', None)
        if includes is None:
            return document
        if not isinstance(includes, list):
            includes = [includes]

        merged: Dict[str, Any] = {}
        for include in includes:
            included = self._read_document(path.parent / str(include), visiting | {resolved})
            merged = self._combine(merged, included, path.parent / str(include))
        return self._combine(merged, document, path)

    @staticmethod
    def _combine(base: Dict[str, Any], overlay: Dict[str, Any], source: Path) -> Dict[str, Any]:
        """Overlay one document on another.

        Connections are pooled and an alias may only be defined once. Every
        other top-level setting is taken from ``overlay`` when it has it.
        """
        combined = dict(base)
        for key, value in overlay.items():
            if key != 'databases':
                combined[key] = value
                continue
            if value is not None and not isinstance(value, dict):
                raise ConfigurationError(f"'databases' in '{source}' must map aliases to connections")
            databases = dict(combined.get('databases') or {})
            for alias, settings in (value or {}).items():
                if alias in databases:
                    raise ConfigurationError(
                        f"Connection alias '{alias}' in '{source}' is already defined",
                        details={'alias': alias, 'file': str(source)},
                    )
                databases[alias] = settings
            combined['databases'] = databases
        return combined

    def create_sample_config(self, output_path: PathLike) -> None:
        """Write a sample connection file covering each store family."""
        sample_config = {
            'databases': {
                'main': {
                    'type': 'pg',
                    'host': 'localhost',
                    'database': 'app',
                    'username': 'app',
                    'password': '${APP_DB_PASSWORD:-app_password}',
                    'options': {'port': 5432},
                },
                'directory': {
                    'type': 'ldap',
                    'host': 'ldap://localhost',
                    'username': 'cn=admin,dc=example,dc=com',
                    'password': '${LDAP_PASSWORD:-secret}',
                },
                'local': {
                    'type': 'sqlite',
                    'database': './local.db',
                },
                'cache': {
                    'type': 'lmdb',
                    'host': './data',
                    'database': 'cache.lmdb',
                    'options': {'map_size': 10485760, 'max_dbs': 16},
                },
            },
            'default_database': 'main',
        }

        with open(output_path, 'w', encoding='utf-8') as file:
            yaml.safe_dump(sample_config, file, default_flow_style=False, sort_keys=False)


def load_config(config_path: Optional[PathLike] = None) -> UniDBConfig:
    """Load the connection file at ``config_path`` or the default location."""
    return ConfigParser().load_config(config_path)


def load_connections(config_path: Optional[PathLike] = None):
    """Load the connection file at ``config_path`` as a ``ConnectionList``."""
    return ConfigParser().load_connections(config_path)


def create_sample_config(output_path: PathLike) -> None:
    """Create a sample configuration file."""
    ConfigParser().create_sample_config(output_path)
