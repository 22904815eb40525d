"""PostgreSQL adapter."""

import logging
from typing import Any, Dict

from sqlalchemy.exc import SQLAlchemyError

from unidb.config.models import BackendType
from unidb.db.base import SQLAdapter, sqlalchemy_error_code
from unidb.db.models import ConnectionDescriptor
from unidb.exceptions import ConnectionFailureError, DatabaseError

logger = logging.getLogger(__name__)


class PostgreSQLAdapter(SQLAdapter):
    """PostgreSQL adapter. The only variant that can create its database."""

    backend_type = BackendType.POSTGRESQL
    driver_module = "psycopg2"
    drivername = "postgresql+psycopg2"
    default_port = 5432
    supports_create = True
    maintenance_database = "postgres"

    def _get_engine_options(self, db: ConnectionDescriptor) -> Dict[str, Any]:
        """Get PostgreSQL-specific engine options."""
        return {
            'connect_args': {
                'connect_timeout': db.options.get('connect_timeout', 10),
                'application_name': db.options.get('application_name', 'unidb'),
            }
        }

    def create(self, db: ConnectionDescriptor) -> None:
        """Create ``db.database`` from the server's maintenance database."""
        if not db.database:
            raise DatabaseError("PostgreSQL create requires a database name", backend=self.backend_type.value)

        try:
            engine = self._create_engine(db, database=self.maintenance_database, isolation_level="AUTOCOMMIT")
        except SQLAlchemyError as e:
            raise ConnectionFailureError(
                f"Failed to create engine for {db.host}: {e}",
                code=sqlalchemy_error_code(e),
                backend=self.backend_type.value,
            ) from e

        statement = f'CREATE DATABASE "{db.database}"'
        logger.debug(statement)
        try:
            with engine.connect() as connection:
                connection.exec_driver_sql(statement)
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Failed to create database '{db.database}': {e}",
                code=sqlalchemy_error_code(e),
                backend=self.backend_type.value,
            ) from e
        finally:
            engine.dispose()
