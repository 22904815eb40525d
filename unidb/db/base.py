"""Base adapter contract and the shared SQL-family implementation."""

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, List, Optional, Sequence

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from unidb.config.models import BackendFamily, BackendType
from unidb.db.models import ConnectionDescriptor, KeyValue, Row
from unidb.exceptions import ConnectionFailureError, DatabaseError, UnsupportedOperationError

logger = logging.getLogger(__name__)


class BaseAdapter(ABC):
    """Driver contract for one backend variant.

    Adapters keep no per-connection state: the open connection lives in
    ``descriptor.handle``. Failures are raised as ``DatabaseError``.
    """

    backend_type: ClassVar[BackendType]
    family: ClassVar[BackendFamily]
    # Module that must be importable for the adapter to be registered
    driver_module: ClassVar[Optional[str]] = None
    value_quote: ClassVar[str] = "'"
    supports_create: ClassVar[bool] = False

    @abstractmethod
    def connect(self, db: ConnectionDescriptor) -> None:
        """Open a connection and store it in ``db.handle``.

        Raises:
            ConnectionFailureError: If the backend refuses the connection.
        """
        pass

    @abstractmethod
    def disconnect(self, db: ConnectionDescriptor) -> None:
        """Close ``db.handle`` and reset it to None."""
        pass

    @abstractmethod
    def fetch_all(
        self,
        db: ConnectionDescriptor,
        statement: str,
        filter: Optional[Sequence[KeyValue]] = None,
    ) -> List[Row]:
        """Run ``statement`` and return every resulting row."""
        pass

    def execute_statement(self, db: ConnectionDescriptor, statement: str) -> None:
        raise UnsupportedOperationError("execute_statement", self.backend_type.value)

    def insert(self, db: ConnectionDescriptor, resource: str, payload: Sequence[KeyValue]) -> None:
        raise UnsupportedOperationError("insert", self.backend_type.value)

    def create(self, db: ConnectionDescriptor) -> None:
        raise UnsupportedOperationError("create", self.backend_type.value)

    def _require_handle(self, db: ConnectionDescriptor) -> Any:
        if db.handle is None:
            raise DatabaseError(
                f"Connection '{db.alias}' is not open",
                backend=self.backend_type.value,
            )
        return db.handle


def sqlalchemy_error_code(error: Exception) -> str:
    """Best available backend error code for a SQLAlchemy/DBAPI exception."""
    orig = getattr(error, 'orig', None)
    if orig is not None:
        pgcode = getattr(orig, 'pgcode', None)
        if pgcode:
            return str(pgcode)
        args = getattr(orig, 'args', ())
        if args and isinstance(args[0], int):
            return str(args[0])
        return type(orig).__name__
    return getattr(error, 'code', None) or type(error).__name__


class SQLAdapter(BaseAdapter):
    """Relational backend reached through a SQLAlchemy engine.

    The handle is a SQLAlchemy ``Connection``. Engines use ``NullPool`` so
    closing the handle closes the backend connection.
    """

    family = BackendFamily.SQL
    drivername: ClassVar[str]
    default_port: ClassVar[Optional[int]] = None

    def build_url(self, db: ConnectionDescriptor, database: Optional[str] = None) -> URL:
        """Build the SQLAlchemy URL for a descriptor.

        Args:
            db: Connection descriptor.
            database: Override for the database name.
        """
        port = db.options.get('port', self.default_port)
        return URL.create(
            self.drivername,
            username=db.user,
            password=db.password,
            host=db.host,
            port=int(port) if port is not None else None,
            database=database if database is not None else db.database,
        )

    def _get_engine_options(self, db: ConnectionDescriptor) -> Dict[str, Any]:
        """Get backend-specific engine options."""
        return {}

    def _create_engine(self, db: ConnectionDescriptor, database: Optional[str] = None, **kwargs: Any):
        engine_args: Dict[str, Any] = {
            'poolclass': NullPool,
            'echo': False,
        }
        engine_args.update(self._get_engine_options(db))
        engine_args.update(kwargs)
        return create_engine(self.build_url(db, database), **engine_args)

    def connect(self, db: ConnectionDescriptor) -> None:
        try:
            engine = self._create_engine(db)
            db.handle = engine.connect()
        except SQLAlchemyError as e:
            raise ConnectionFailureError(
                f"Failed to connect to {self.backend_type.value} on {db.host}: {e}",
                code=sqlalchemy_error_code(e),
                backend=self.backend_type.value,
            ) from e
        except Exception as e:
            raise ConnectionFailureError(
                f"Unexpected error connecting to {db.host}: {e}",
                backend=self.backend_type.value,
            ) from e

    def disconnect(self, db: ConnectionDescriptor) -> None:
        connection: Optional[Connection] = db.handle
        if connection is None:
            return
        try:
            engine = connection.engine
            connection.close()
            engine.dispose()
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Error closing connection '{db.alias}': {e}",
                code=sqlalchemy_error_code(e),
                backend=self.backend_type.value,
            ) from e
        finally:
            db.handle = None

    def execute_statement(self, db: ConnectionDescriptor, statement: str) -> None:
        connection: Connection = self._require_handle(db)
        try:
            connection.execution_options(no_parameters=True).exec_driver_sql(statement)
            connection.commit()
        except SQLAlchemyError as e:
            self._rollback(connection)
            raise DatabaseError(
                f"Statement execution failed: {e}",
                code=sqlalchemy_error_code(e),
                backend=self.backend_type.value,
            ) from e

    def fetch_all(
        self,
        db: ConnectionDescriptor,
        statement: str,
        filter: Optional[Sequence[KeyValue]] = None,
    ) -> List[Row]:
        """Run a query; filter pairs are bound as named parameters (``:key``)."""
        connection: Connection = self._require_handle(db)
        try:
            if filter:
                params = {kv.key: kv.value for kv in filter}
                result = connection.execute(text(statement), params)
            else:
                result = connection.execution_options(no_parameters=True).exec_driver_sql(statement)

            rows: List[Row] = []
            if result.returns_rows:
                columns = list(result.keys())
                for record in result.fetchall():
                    row = Row()
                    for name, value in zip(columns, record):
                        row.add(name, value)
                    rows.append(row)
            connection.commit()
            return rows

        except SQLAlchemyError as e:
            self._rollback(connection)
            raise DatabaseError(
                f"Query execution failed: {e}",
                code=sqlalchemy_error_code(e),
                backend=self.backend_type.value,
            ) from e

    @staticmethod
    def _rollback(connection: Connection) -> None:
        try:
            connection.rollback()
        except SQLAlchemyError:
            logger.debug("Rollback failed", exc_info=True)
