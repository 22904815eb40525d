"""SQLite adapter."""

from pathlib import Path
from typing import Any, Dict, Optional

from sqlalchemy.engine import URL

from unidb.config.models import BackendType
from unidb.db.base import SQLAdapter
from unidb.db.models import ConnectionDescriptor
from unidb.exceptions import ConnectionFailureError


class SQLiteAdapter(SQLAdapter):
    """SQLite file database adapter.

    The file is the ``path`` option, or ``database`` resolved against
    ``host`` when a directory is given there.
    """

    backend_type = BackendType.SQLITE
    driver_module = "sqlite3"
    drivername = "sqlite"

    def database_path(self, db: ConnectionDescriptor) -> str:
        path = db.options.get('path') or db.database
        if not path:
            raise ConnectionFailureError("SQLite requires a database file path", backend=self.backend_type.value)
        if path == ":memory:":
            return path

        db_path = Path(path)
        if not db_path.is_absolute():
            base = Path(db.host) if db.host else Path.cwd()
            db_path = base / db_path

        db_path.parent.mkdir(parents=True, exist_ok=True)
        return str(db_path)

    def build_url(self, db: ConnectionDescriptor, database: Optional[str] = None) -> URL:
        return URL.create(self.drivername, database=database or self.database_path(db))

    def _get_engine_options(self, db: ConnectionDescriptor) -> Dict[str, Any]:
        """Get SQLite-specific engine options."""
        return {
            'connect_args': {
                'timeout': db.options.get('timeout', 30),
            }
        }
