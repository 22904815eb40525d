"""LDAP directory adapter."""

import logging
from typing import Any, Dict, List, Optional, Sequence

from ldap3 import ALL_ATTRIBUTES, BASE, LEVEL, NONE, SUBTREE, Connection, Server
from ldap3.core.exceptions import LDAPException
from ldap3.utils.conv import escape_filter_chars

from unidb.config.models import BackendFamily, BackendType
from unidb.db.base import BaseAdapter
from unidb.db.models import ConnectionDescriptor, KeyValue, Row, count_keyvals
from unidb.exceptions import ConnectionFailureError, DatabaseError

logger = logging.getLogger(__name__)

SEARCH_SCOPES = {
    'base': BASE,
    'one': LEVEL,
    'sub': SUBTREE,
}


class LDAPAdapter(BaseAdapter):
    """LDAP adapter.

    ``fetch_all`` treats the statement as the search base and the filter
    pairs as an AND of equality matches. ``insert`` adds an entry whose DN is
    the resource name.
    """

    backend_type = BackendType.LDAP
    family = BackendFamily.DIRECTORY
    driver_module = "ldap3"

    def connect(self, db: ConnectionDescriptor) -> None:
        try:
            server = Server(
                db.host,
                port=db.options.get('port'),
                use_ssl=bool(db.options.get('use_ssl', False)),
                get_info=NONE,
                connect_timeout=db.options.get('connect_timeout', 10),
            )
            connection = Connection(server, user=db.user, password=db.password, raise_exceptions=False)
            if not connection.bind():
                self._release(connection)
                raise ConnectionFailureError(
                    f"LDAP bind to {db.host} failed: {connection.result.get('message') or connection.result.get('description')}",
                    code=connection.result.get('description'),
                    backend=self.backend_type.value,
                )
        except LDAPException as e:
            raise ConnectionFailureError(
                f"Failed to connect to ldap on {db.host}: {e}",
                code=type(e).__name__,
                backend=self.backend_type.value,
            ) from e

        db.handle = connection

    def disconnect(self, db: ConnectionDescriptor) -> None:
        connection = db.handle
        if connection is None:
            return
        try:
            connection.unbind()
        except LDAPException as e:
            raise DatabaseError(
                f"Error unbinding from {db.host}: {e}",
                code=type(e).__name__,
                backend=self.backend_type.value,
            ) from e
        finally:
            db.handle = None

    @staticmethod
    def _release(connection: Connection) -> None:
        # A failed bind still leaves the socket open
        try:
            connection.unbind()
        except LDAPException:
            logger.debug("Unbind after failed bind failed", exc_info=True)

    @staticmethod
    def build_filter(filter: Optional[Sequence[KeyValue]]) -> str:
        """Render filter pairs as an LDAP search filter."""
        if not filter:
            return "(objectClass=*)"
        terms = [f"({kv.key}={escape_filter_chars(kv.value)})" for kv in filter]
        if len(terms) == 1:
            return terms[0]
        return "(&" + "".join(terms) + ")"

    def fetch_all(
        self,
        db: ConnectionDescriptor,
        statement: str,
        filter: Optional[Sequence[KeyValue]] = None,
    ) -> List[Row]:
        connection = self._require_handle(db)
        scope = SEARCH_SCOPES.get(db.options.get('scope', 'sub'), SUBTREE)
        search_filter = self.build_filter(filter)
        logger.debug(f"LDAP search base={statement} filter={search_filter}")

        try:
            connection.search(
                search_base=statement,
                search_filter=search_filter,
                search_scope=scope,
                attributes=ALL_ATTRIBUTES,
            )
        except LDAPException as e:
            raise DatabaseError(
                f"LDAP search failed: {e}",
                code=type(e).__name__,
                backend=self.backend_type.value,
            ) from e

        self._check_result(connection, "search", allow_missing=True)

        rows: List[Row] = []
        for entry in connection.response or []:
            if entry.get('type') != 'searchResEntry':
                continue
            row = Row()
            row.add('dn', entry.get('dn'))
            for name, values in (entry.get('attributes') or {}).items():
                if not isinstance(values, (list, tuple)):
                    values = [values]
                for value in values:
                    row.add(name, value)
            rows.append(row)
        return rows

    @staticmethod
    def build_attributes(payload: Sequence[KeyValue]) -> Dict[str, List[str]]:
        """Group payload pairs into attributes; repeated keys become multi-valued."""
        attributes: Dict[str, List[str]] = {}
        for kv in payload:
            attributes.setdefault(kv.key, []).append(kv.value)
        return attributes

    def insert(self, db: ConnectionDescriptor, resource: str, payload: Sequence[KeyValue]) -> None:
        connection = self._require_handle(db)
        total, unique = count_keyvals(payload)
        logger.debug(f"LDAP add {resource}: {unique} attribute runs, {total} values")

        try:
            connection.add(resource, attributes=self.build_attributes(payload))
        except LDAPException as e:
            raise DatabaseError(
                f"LDAP add of '{resource}' failed: {e}",
                code=type(e).__name__,
                backend=self.backend_type.value,
            ) from e

        self._check_result(connection, "add")

    def _check_result(self, connection: Any, operation: str, allow_missing: bool = False) -> None:
        result = connection.result or {}
        code = result.get('result', 0)
        # 32 is noSuchObject: an empty search, but a failed add
        if code == 0 or (allow_missing and code == 32):
            return
        raise DatabaseError(
            f"LDAP {operation} failed: {result.get('message') or result.get('description')}",
            code=result.get('description'),
            backend=self.backend_type.value,
        )
