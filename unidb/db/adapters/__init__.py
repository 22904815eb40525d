"""Backend adapters for the supported store families.

The LDAP and LMDB adapters import their client libraries at module load and
are loaded on demand by the adapter registry.
"""

from unidb.db.adapters.postgresql import PostgreSQLAdapter
from unidb.db.adapters.mysql import MySQLAdapter
from unidb.db.adapters.tds import TDSAdapter
from unidb.db.adapters.sqlite import SQLiteAdapter

__all__ = [
    "PostgreSQLAdapter",
    "MySQLAdapter",
    "TDSAdapter",
    "SQLiteAdapter",
]
