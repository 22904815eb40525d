"""Backend routing, connection lifecycle and the generic result model."""

from unidb.db.base import BaseAdapter, SQLAdapter
from unidb.db.models import (
    ConnectionDescriptor,
    ConnectionList,
    Field,
    Row,
    KeyValue,
    count_keyvals,
    field,
    find_connection,
    pairs_from_mapping,
    release_connections,
    release_rows,
    rows_to_dataframe,
)
from unidb.db.result import DBError, ErrorKind, OperationResult
from unidb.db.registry import (
    AdapterRegistry,
    create_default_registry,
    get_registry,
    set_registry,
)
from unidb.db.lifecycle import ConnectionLifecycle
from unidb.db.sql_builder import SQLInsertBuilder, build_insert, value_quote
from unidb.db.dispatcher import (
    Dispatcher,
    get_dispatcher,
    set_dispatcher,
    connect,
    create,
    disconnect,
    execute_statement,
    fetch_all,
    insert,
)

__all__ = [
    # Adapters
    "BaseAdapter",
    "SQLAdapter",
    "AdapterRegistry",
    "create_default_registry",
    "get_registry",
    "set_registry",
    # Result model
    "ConnectionDescriptor",
    "ConnectionList",
    "Field",
    "Row",
    "KeyValue",
    "count_keyvals",
    "field",
    "find_connection",
    "pairs_from_mapping",
    "release_connections",
    "release_rows",
    "rows_to_dataframe",
    "DBError",
    "ErrorKind",
    "OperationResult",
    # Lifecycle and SQL building
    "ConnectionLifecycle",
    "SQLInsertBuilder",
    "build_insert",
    "value_quote",
    # Dispatch
    "Dispatcher",
    "get_dispatcher",
    "set_dispatcher",
    "connect",
    "create",
    "disconnect",
    "execute_statement",
    "fetch_all",
    "insert",
]
