"""MySQL adapter."""

from typing import Any, Dict

from unidb.config.models import BackendType
from unidb.db.base import SQLAdapter
from unidb.db.models import ConnectionDescriptor


class MySQLAdapter(SQLAdapter):
    """MySQL adapter. Insert values are wrapped in double quotes."""

    backend_type = BackendType.MYSQL
    driver_module = "pymysql"
    drivername = "mysql+pymysql"
    default_port = 3306
    value_quote = '"'

    def _get_engine_options(self, db: ConnectionDescriptor) -> Dict[str, Any]:
        """Get MySQL-specific engine options."""
        return {
            'connect_args': {
                'connect_timeout': db.options.get('connect_timeout', 10),
                'charset': db.options.get('charset', 'utf8mb4'),
            }
        }
