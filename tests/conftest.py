"""Shared fixtures: recording adapters and isolated registries."""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import pytest

from unidb.config.models import BackendFamily, BackendType
from unidb.db.base import BaseAdapter
from unidb.db.dispatcher import Dispatcher, set_dispatcher
from unidb.db.models import ConnectionDescriptor, KeyValue, Row
from unidb.db.registry import AdapterRegistry, set_registry
from unidb.exceptions import ConnectionFailureError, DatabaseError


class OpenHandle:
    """Stand-in for a backend connection object."""

    def __init__(self, alias: Optional[str]) -> None:
        self.alias = alias


class RecordingAdapter(BaseAdapter):
    """Adapter that records every call instead of talking to a backend."""

    def __init__(
        self,
        backend_type: BackendType = BackendType.POSTGRESQL,
        family: BackendFamily = BackendFamily.SQL,
        value_quote: str = "'",
        supports_create: bool = False,
        fail_connect: bool = False,
        fail_execute: bool = False,
        rows: Optional[List[Row]] = None,
    ) -> None:
        self.backend_type = backend_type
        self.family = family
        self.value_quote = value_quote
        self.supports_create = supports_create
        self.fail_connect = fail_connect
        self.fail_execute = fail_execute
        self.rows = rows or []
        self.calls: List[Tuple] = []

    def connect(self, db: ConnectionDescriptor) -> None:
        self.calls.append(("connect", db.alias))
        if self.fail_connect:
            raise ConnectionFailureError("connection refused", code="08001", backend=self.backend_type.value)
        db.handle = OpenHandle(db.alias)

    def disconnect(self, db: ConnectionDescriptor) -> None:
        self.calls.append(("disconnect", db.alias))
        db.handle = None

    def execute_statement(self, db: ConnectionDescriptor, statement: str) -> None:
        if self.family != BackendFamily.SQL:
            return super().execute_statement(db, statement)
        self.calls.append(("execute", statement, db.handle is not None))
        if self.fail_execute:
            raise DatabaseError("relation does not exist", code="42P01", backend=self.backend_type.value)

    def fetch_all(
        self,
        db: ConnectionDescriptor,
        statement: str,
        filter: Optional[Sequence[KeyValue]] = None,
    ) -> List[Row]:
        self.calls.append(("fetch", statement, tuple(filter or ()), db.handle is not None))
        return list(self.rows)

    def insert(self, db: ConnectionDescriptor, resource: str, payload: Sequence[KeyValue]) -> None:
        if self.family == BackendFamily.SQL:
            return super().insert(db, resource, payload)
        self.calls.append(("insert", resource, tuple(payload), db.handle is not None))

    def create(self, db: ConnectionDescriptor) -> None:
        if not self.supports_create:
            return super().create(db)
        self.calls.append(("create", db.database))

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]


@pytest.fixture(autouse=True)
def reset_globals():
    """Keep the process-wide registry and dispatcher out of each test."""
    set_registry(None)
    set_dispatcher(None)
    yield
    set_registry(None)
    set_dispatcher(None)


@pytest.fixture
def pg_adapter() -> RecordingAdapter:
    return RecordingAdapter(BackendType.POSTGRESQL, supports_create=True)


@pytest.fixture
def my_adapter() -> RecordingAdapter:
    return RecordingAdapter(BackendType.MYSQL, value_quote='"')


@pytest.fixture
def ldap_adapter() -> RecordingAdapter:
    return RecordingAdapter(BackendType.LDAP, family=BackendFamily.DIRECTORY)


@pytest.fixture
def registry(pg_adapter, my_adapter, ldap_adapter) -> AdapterRegistry:
    registry = AdapterRegistry()
    registry.register_instance(BackendType.POSTGRESQL, pg_adapter)
    registry.register_instance(BackendType.MYSQL, my_adapter)
    registry.register_instance(BackendType.LDAP, ldap_adapter)
    return registry


@pytest.fixture
def dispatcher(registry) -> Dispatcher:
    return Dispatcher(registry=registry)


@pytest.fixture
def make_descriptor():
    """Factory for connection descriptors with sensible defaults."""
    def factory(tag: Optional[str] = "pg", alias: str = "main", **kwargs) -> ConnectionDescriptor:
        defaults = dict(host="db.example.com", database="app", user="app", password="secret")
        defaults.update(kwargs)
        return ConnectionDescriptor(alias=alias, type=tag, **defaults)

    return factory


@pytest.fixture
def adapter_factory():
    """The recording adapter class, for tests that need custom behaviour."""
    return RecordingAdapter
