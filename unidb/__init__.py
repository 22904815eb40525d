"""UniDB: one data-access API over heterogeneous backend stores.

UniDB provides:
- Backend routing by connection type tag (LDAP, MySQL, PostgreSQL, TDS, SQLite, LMDB)
- Leave-as-found connection lifecycle for one-shot statements
- A generic SQL INSERT builder with per-backend value quoting
- A uniform result model of rows and text fields
- YAML-based connection configuration
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Core exports
from unidb.exceptions import UniDBError, ConfigurationError, DatabaseError

__all__ = [
    "__version__",
    "UniDBError",
    "ConfigurationError",
    "DatabaseError",
]
