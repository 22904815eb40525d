"""LMDB key-value adapter."""

import logging
import os
from typing import List, Optional, Sequence

import lmdb

from unidb.config.models import BackendFamily, BackendType
from unidb.db.base import BaseAdapter
from unidb.db.models import ConnectionDescriptor, KeyValue, Row
from unidb.exceptions import ConnectionFailureError, DatabaseError

logger = logging.getLogger(__name__)

DEFAULT_MAP_SIZE = 10 * 1024 * 1024
DEFAULT_MAX_DBS = 16


class LMDBAdapter(BaseAdapter):
    """LMDB environment adapter.

    The environment lives at the ``path`` option or ``<host>/<database>``.
    Statements and resource names select a named sub-database; an empty
    name selects the main database. Rows carry ``key`` and ``value`` fields.
    """

    backend_type = BackendType.LMDB
    family = BackendFamily.KEY_VALUE
    driver_module = "lmdb"

    def environment_path(self, db: ConnectionDescriptor) -> str:
        path = db.options.get('path')
        if path:
            return str(path)
        if not db.database:
            raise ConnectionFailureError("LMDB requires a database name or path", backend=self.backend_type.value)
        return os.path.join(db.host or ".", db.database)

    def connect(self, db: ConnectionDescriptor) -> None:
        path = self.environment_path(db)
        try:
            map_size = int(db.options.get('map_size', DEFAULT_MAP_SIZE))
            max_dbs = int(db.options.get('max_dbs', DEFAULT_MAX_DBS))
        except (TypeError, ValueError) as e:
            raise ConnectionFailureError(
                f"Invalid LMDB environment options for {path}: {e}",
                code=type(e).__name__,
                backend=self.backend_type.value,
            ) from e

        try:
            db.handle = lmdb.open(
                path,
                map_size=map_size,
                max_dbs=max_dbs,
                create=bool(db.options.get('create', True)),
            )
        except lmdb.Error as e:
            raise ConnectionFailureError(
                f"Failed to open LMDB environment {path}: {e}",
                code=type(e).__name__,
                backend=self.backend_type.value,
            ) from e

    def disconnect(self, db: ConnectionDescriptor) -> None:
        env = db.handle
        if env is None:
            return
        try:
            env.close()
        except lmdb.Error as e:
            raise DatabaseError(
                f"Error closing LMDB environment for '{db.alias}': {e}",
                code=type(e).__name__,
                backend=self.backend_type.value,
            ) from e
        finally:
            db.handle = None

    @staticmethod
    def _db_name(name: Optional[str]) -> Optional[bytes]:
        return name.encode("utf-8") if name else None

    def fetch_all(
        self,
        db: ConnectionDescriptor,
        statement: str,
        filter: Optional[Sequence[KeyValue]] = None,
    ) -> List[Row]:
        """Read the sub-database named by ``statement``.

        With a filter only the listed keys are returned, in filter order;
        missing keys are skipped.
        """
        env = self._require_handle(db)
        rows: List[Row] = []
        try:
            sub_db = env.open_db(self._db_name(statement), create=False)
            with env.begin(db=sub_db) as txn:
                if filter:
                    for kv in filter:
                        value = txn.get(kv.key.encode("utf-8"))
                        if value is not None:
                            rows.append(self._row(kv.key.encode("utf-8"), value))
                else:
                    for key, value in txn.cursor():
                        rows.append(self._row(key, value))
        except lmdb.Error as e:
            raise DatabaseError(
                f"LMDB read of '{statement}' failed: {e}",
                code=type(e).__name__,
                backend=self.backend_type.value,
            ) from e
        return rows

    def insert(self, db: ConnectionDescriptor, resource: str, payload: Sequence[KeyValue]) -> None:
        """Put every pair into the sub-database ``resource`` in one write transaction."""
        env = self._require_handle(db)
        try:
            sub_db = env.open_db(self._db_name(resource))
            with env.begin(write=True, db=sub_db) as txn:
                for kv in payload:
                    txn.put(kv.key.encode("utf-8"), kv.value.encode("utf-8"))
        except lmdb.Error as e:
            raise DatabaseError(
                f"LMDB write to '{resource}' failed: {e}",
                code=type(e).__name__,
                backend=self.backend_type.value,
            ) from e

    @staticmethod
    def _row(key: bytes, value: bytes) -> Row:
        row = Row()
        row.add('key', key)
        row.add('value', value)
        return row
