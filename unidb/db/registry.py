"""Adapter registry: maps backend type tags to adapter implementations."""

import importlib
import importlib.util
import logging
from typing import Dict, Iterable, List, Optional, Type

from unidb.config.models import BackendFamily, BackendType, EnvironmentSettings
from unidb.db.base import BaseAdapter

logger = logging.getLogger(__name__)

# Import paths of the bundled adapters, loaded lazily so a missing client
# library only removes its own variant.
DEFAULT_ADAPTERS: Dict[BackendType, str] = {
    BackendType.LDAP: "unidb.db.adapters.ldap:LDAPAdapter",
    BackendType.MYSQL: "unidb.db.adapters.mysql:MySQLAdapter",
    BackendType.POSTGRESQL: "unidb.db.adapters.postgresql:PostgreSQLAdapter",
    BackendType.TDS: "unidb.db.adapters.tds:TDSAdapter",
    BackendType.LMDB: "unidb.db.adapters.lmdb:LMDBAdapter",
    BackendType.SQLITE: "unidb.db.adapters.sqlite:SQLiteAdapter",
}


class AdapterRegistry:
    """Registry of available backend adapters and their value quoting rules."""

    def __init__(self) -> None:
        self._adapters: Dict[str, BaseAdapter] = {}
        self._quotes: Dict[str, str] = {}

    def register(
        self,
        backend_type: BackendType,
        adapter_class: Type[BaseAdapter],
        value_quote: Optional[str] = None,
    ) -> None:
        """Register an adapter for a backend variant.

        Args:
            backend_type: Variant the adapter serves.
            adapter_class: Adapter class to instantiate.
            value_quote: Quote used around INSERT values; defaults to the
                adapter's ``value_quote``.
        """
        adapter = adapter_class()
        self._adapters[backend_type.value] = adapter
        self._quotes[backend_type.value] = value_quote or adapter_class.value_quote

    def register_instance(self, backend_type: BackendType, adapter: BaseAdapter, value_quote: Optional[str] = None) -> None:
        """Register an already constructed adapter."""
        self._adapters[backend_type.value] = adapter
        self._quotes[backend_type.value] = value_quote or adapter.value_quote

    def unregister(self, backend_type: BackendType) -> None:
        self._adapters.pop(backend_type.value, None)
        self._quotes.pop(backend_type.value, None)

    def resolve(self, tag: Optional[str]) -> Optional[BaseAdapter]:
        """Return the adapter for an exact (case-sensitive) tag, or None."""
        if tag is None:
            return None
        return self._adapters.get(tag)

    def value_quote(self, backend_type: BackendType) -> str:
        """Quote character used around INSERT values for ``backend_type``."""
        return self._quotes.get(backend_type.value, "'")

    def family(self, tag: str) -> Optional[BackendFamily]:
        adapter = self.resolve(tag)
        return adapter.family if adapter is not None else None

    def get_supported_types(self) -> List[BackendType]:
        """Get list of registered backend types."""
        return [BackendType(tag) for tag in self._adapters]

    def is_available(self, tag: str) -> bool:
        return tag in self._adapters


def load_adapter_class(path: str) -> Type[BaseAdapter]:
    module_name, class_name = path.split(":")
    module = importlib.import_module(module_name)
    return getattr(module, class_name)


def driver_available(adapter_class: Type[BaseAdapter]) -> bool:
    """Whether the adapter's client library can be imported."""
    if not adapter_class.driver_module:
        return True
    return importlib.util.find_spec(adapter_class.driver_module) is not None


def create_default_registry(disabled: Optional[Iterable[str]] = None) -> AdapterRegistry:
    """Build a registry of every bundled adapter whose client library is installed.

    Args:
        disabled: Tags to leave out. Defaults to ``UNIDB_DISABLED_BACKENDS``.
    """
    if disabled is None:
        disabled = EnvironmentSettings().disabled_backend_tags
    disabled = set(disabled)

    registry = AdapterRegistry()
    for backend_type, path in DEFAULT_ADAPTERS.items():
        if backend_type.value in disabled:
            logger.debug(f"Backend '{backend_type.value}' disabled by configuration")
            continue
        try:
            adapter_class = load_adapter_class(path)
        except ImportError as e:
            logger.debug(f"Backend '{backend_type.value}' unavailable: {e}")
            continue
        if not driver_available(adapter_class):
            logger.debug(f"Backend '{backend_type.value}' unavailable: {adapter_class.driver_module} not installed")
            continue
        registry.register(backend_type, adapter_class)

    return registry


# Global registry instance
_registry: Optional[AdapterRegistry] = None


def get_registry() -> AdapterRegistry:
    """Get the global adapter registry, building it on first use."""
    global _registry

    if _registry is None:
        _registry = create_default_registry()

    return _registry


def set_registry(registry: Optional[AdapterRegistry]) -> None:
    """Replace the global adapter registry (None rebuilds it on next use)."""
    global _registry
    _registry = registry
