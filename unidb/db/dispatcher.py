"""Top-level data-access operations routed to the backend adapters."""

import logging
from typing import Callable, Optional, Sequence

from unidb.config.models import BackendFamily
from unidb.db.base import BaseAdapter
from unidb.db.lifecycle import ConnectionLifecycle
from unidb.db.models import ConnectionDescriptor, KeyValue
from unidb.db.registry import AdapterRegistry, get_registry
from unidb.db.result import DBError, ErrorKind, OperationResult
from unidb.db.sql_builder import SQLInsertBuilder
from unidb.exceptions import (
    ConnectionFailureError,
    DatabaseError,
    NullInputError,
    UnknownBackendTypeError,
    UnsupportedOperationError,
)

logger = logging.getLogger(__name__)


class Dispatcher:
    """Routes connect/create/disconnect/execute/fetch/insert to the right adapter.

    Every operation returns an ``OperationResult`` and never raises for
    backend, routing or input failures. ``last_error`` mirrors the error of
    the most recent call on this dispatcher and is reset at the start of each
    call; it is a convenience for single-threaded callers only.

    A descriptor's handle is owned by one caller at a time. Nothing here
    locks it.
    """

    def __init__(
        self,
        registry: Optional[AdapterRegistry] = None,
        lifecycle: Optional[ConnectionLifecycle] = None,
    ) -> None:
        self.registry = registry if registry is not None else get_registry()
        self.lifecycle = lifecycle or ConnectionLifecycle()
        self.insert_builder = SQLInsertBuilder(self)
        self.last_error: Optional[DBError] = None

    def connect(self, db: Optional[ConnectionDescriptor]) -> OperationResult:
        """Open a long-lived connection. Already connected descriptors are left alone."""
        def body(adapter: BaseAdapter) -> OperationResult:
            if db.handle is not None:
                logger.debug(f"Connection '{db.alias}' already open")
                return OperationResult.success()
            adapter.connect(db)
            return OperationResult.success()

        return self._dispatch("db_connect", db, body)

    def create(self, db: Optional[ConnectionDescriptor]) -> OperationResult:
        """Create the database named by the descriptor, where the backend supports it."""
        def body(adapter: BaseAdapter) -> OperationResult:
            if not adapter.supports_create:
                raise UnsupportedOperationError("create", db.type)
            adapter.create(db)
            return OperationResult.success()

        return self._dispatch("db_create", db, body)

    def disconnect(self, db: Optional[ConnectionDescriptor]) -> OperationResult:
        """Close the descriptor's connection. Closing a closed connection succeeds."""
        def body(adapter: BaseAdapter) -> OperationResult:
            if db.handle is None:
                return OperationResult.success()
            adapter.disconnect(db)
            return OperationResult.success()

        return self._dispatch("db_disconnect", db, body)

    def execute_statement(self, db: Optional[ConnectionDescriptor], statement: Optional[str]) -> OperationResult:
        """Execute a statement that returns no rows.

        Opens an ephemeral connection if needed and closes it again before
        returning, whatever the outcome.
        """
        def body(adapter: BaseAdapter) -> OperationResult:
            if statement is None:
                raise NullInputError("No statement supplied to db_exec_sql()")
            with self.lifecycle.scoped(adapter, db):
                adapter.execute_statement(db, statement)
            return OperationResult.success()

        return self._dispatch("db_exec_sql", db, body)

    def fetch_all(
        self,
        db: Optional[ConnectionDescriptor],
        statement: Optional[str],
        filter: Optional[Sequence[KeyValue]] = None,
    ) -> OperationResult:
        """Run a query and return every row in ``result.rows``.

        The meaning of ``statement`` and ``filter`` depends on the backend
        family: SQL text with named parameters, an LDAP search base with
        equality filters, or an LMDB sub-database with selected keys.
        """
        def body(adapter: BaseAdapter) -> OperationResult:
            if statement is None:
                raise NullInputError("No statement supplied to db_fetch_all()")
            with self.lifecycle.scoped(adapter, db):
                rows = adapter.fetch_all(db, statement, filter)
            return OperationResult.success(rows)

        return self._dispatch("db_fetch_all", db, body)

    def insert(
        self,
        db: Optional[ConnectionDescriptor],
        resource: Optional[str],
        payload: Optional[Sequence[KeyValue]],
    ) -> OperationResult:
        """Insert ``payload`` into ``resource``.

        SQL backends go through the generic INSERT builder; directory and
        key-value backends use their native insert.
        """
        def body(adapter: BaseAdapter) -> OperationResult:
            if not resource:
                raise NullInputError("No resource supplied to db_insert()")
            if not payload:
                raise NullInputError("No data supplied to db_insert()")
            if adapter.family == BackendFamily.SQL:
                return self.insert_builder.insert(adapter, db, resource, payload)
            with self.lifecycle.scoped(adapter, db):
                adapter.insert(db, resource, payload)
            return OperationResult.success()

        return self._dispatch("db_insert", db, body)

    def _dispatch(
        self,
        operation: str,
        db: Optional[ConnectionDescriptor],
        body: Callable[[BaseAdapter], OperationResult],
    ) -> OperationResult:
        self.last_error = None
        try:
            if db is None:
                raise NullInputError(f"No database info supplied to {operation}()")
            adapter = self.registry.resolve(db.type)
            if adapter is None:
                raise UnknownBackendTypeError(db.type, operation)
            result = body(adapter)

        except NullInputError as e:
            return self._fail(ErrorKind.NULL_INPUT, e.message)
        except UnknownBackendTypeError as e:
            return self._fail(ErrorKind.UNKNOWN_BACKEND_TYPE, e.message, backend=str(e.tag))
        except UnsupportedOperationError as e:
            return self._fail(ErrorKind.UNSUPPORTED_OPERATION, e.message, backend=e.backend)
        except ConnectionFailureError as e:
            return self._fail(ErrorKind.CONNECTION_FAILURE, e.message, code=e.code, backend=e.backend)
        except DatabaseError as e:
            return self._fail(ErrorKind.BACKEND_OPERATION_FAILURE, e.message, code=e.code, backend=e.backend)

        if not result.ok:
            self.last_error = result.error
        return result

    def _fail(
        self,
        kind: ErrorKind,
        message: str,
        code: Optional[str] = None,
        backend: Optional[str] = None,
    ) -> OperationResult:
        logger.error(message)
        result = OperationResult.failure(kind, message, code=code, backend=backend)
        self.last_error = result.error
        return result


# Global dispatcher instance
_dispatcher: Optional[Dispatcher] = None


def get_dispatcher() -> Dispatcher:
    """Get the global dispatcher, creating it with the global registry on first use."""
    global _dispatcher

    if _dispatcher is None:
        _dispatcher = Dispatcher()

    return _dispatcher


def set_dispatcher(dispatcher: Optional[Dispatcher]) -> None:
    """Set the global dispatcher instance (None resets it)."""
    global _dispatcher
    _dispatcher = dispatcher


def connect(db: Optional[ConnectionDescriptor]) -> OperationResult:
    return get_dispatcher().connect(db)


def create(db: Optional[ConnectionDescriptor]) -> OperationResult:
    return get_dispatcher().create(db)


def disconnect(db: Optional[ConnectionDescriptor]) -> OperationResult:
    return get_dispatcher().disconnect(db)


def execute_statement(db: Optional[ConnectionDescriptor], statement: Optional[str]) -> OperationResult:
    return get_dispatcher().execute_statement(db, statement)


def fetch_all(
    db: Optional[ConnectionDescriptor],
    statement: Optional[str],
    filter: Optional[Sequence[KeyValue]] = None,
) -> OperationResult:
    return get_dispatcher().fetch_all(db, statement, filter)


def insert(
    db: Optional[ConnectionDescriptor],
    resource: Optional[str],
    payload: Optional[Sequence[KeyValue]],
) -> OperationResult:
    return get_dispatcher().insert(db, resource, payload)
