"""Generic INSERT statement builder for the SQL backend family.

Values are wrapped in the backend's quote character as-is. Embedded quotes
and SQL metacharacters are not escaped, so payloads must come from trusted
sources.
"""

import logging
from typing import TYPE_CHECKING, Optional, Sequence

from unidb.config.models import BackendType
from unidb.db.models import KeyValue
from unidb.exceptions import NullInputError

if TYPE_CHECKING:
    from unidb.db.base import BaseAdapter
    from unidb.db.dispatcher import Dispatcher
    from unidb.db.models import ConnectionDescriptor
    from unidb.db.registry import AdapterRegistry
    from unidb.db.result import OperationResult

logger = logging.getLogger(__name__)


def build_insert(resource: str, payload: Sequence[KeyValue], quote: str = "'") -> str:
    """Build ``INSERT INTO <resource> (<fields>) VALUES (<values>)``.

    Args:
        resource: Target table.
        payload: Ordered field/value pairs; order is kept exactly.
        quote: Character placed around every value.

    Raises:
        NullInputError: If the resource or payload is empty.
    """
    if not resource:
        raise NullInputError("No resource supplied for insert")
    if not payload:
        raise NullInputError(f"No data supplied for insert into {resource}")

    fields = []
    values = []
    for kv in payload:
        fields.append(kv.key)
        values.append(f"{quote}{kv.value}{quote}")

    return f"INSERT INTO {resource} ({','.join(fields)}) VALUES ({','.join(values)})"


def value_quote(backend_type: BackendType, registry: Optional["AdapterRegistry"] = None) -> str:
    """Quote character registered for ``backend_type``."""
    if registry is None:
        from unidb.db.registry import get_registry
        registry = get_registry()
    return registry.value_quote(backend_type)


class SQLInsertBuilder:
    """Builds an INSERT for a descriptor and runs it through the dispatcher.

    Execution goes through ``Dispatcher.execute_statement`` inside a
    lifecycle scope, so an ephemeral connection opened here is closed
    before returning.
    """

    def __init__(self, dispatcher: "Dispatcher") -> None:
        self.dispatcher = dispatcher

    def build(self, backend_type: BackendType, resource: str, payload: Sequence[KeyValue]) -> str:
        statement = build_insert(resource, payload, value_quote(backend_type, self.dispatcher.registry))
        logger.debug(statement)
        return statement

    def insert(
        self,
        adapter: "BaseAdapter",
        db: "ConnectionDescriptor",
        resource: str,
        payload: Sequence[KeyValue],
    ) -> "OperationResult":
        """Build the statement for ``db`` and execute it, leaving the connection as found.

        Raises:
            NullInputError: If the resource or payload is empty.
            ConnectionFailureError: If an ephemeral connect fails.
        """
        statement = self.build(adapter.backend_type, resource, payload)
        with self.dispatcher.lifecycle.scoped(adapter, db):
            return self.dispatcher.execute_statement(db, statement)
