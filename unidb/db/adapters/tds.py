"""TDS adapter for Microsoft SQL Server and Sybase."""

from typing import Any, Dict

from unidb.config.models import BackendType
from unidb.db.base import SQLAdapter
from unidb.db.models import ConnectionDescriptor


class TDSAdapter(SQLAdapter):
    """SQL Server / Sybase adapter over FreeTDS (pymssql)."""

    backend_type = BackendType.TDS
    driver_module = "pymssql"
    drivername = "mssql+pymssql"
    default_port = 1433

    def _get_engine_options(self, db: ConnectionDescriptor) -> Dict[str, Any]:
        """Get TDS-specific engine options."""
        options: Dict[str, Any] = {'login_timeout': db.options.get('connect_timeout', 10)}
        if 'tds_version' in db.options:
            options['tds_version'] = db.options['tds_version']
        return {'connect_args': options}
