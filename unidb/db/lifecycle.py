"""Leave-as-found connection handling for one-shot operations."""

import logging
from contextlib import contextmanager
from typing import Generator

from unidb.db.base import BaseAdapter
from unidb.db.models import ConnectionDescriptor
from unidb.exceptions import ConnectionFailureError, DatabaseError

logger = logging.getLogger(__name__)


class ConnectionLifecycle:
    """Opens a connection for the duration of one call when none is open.

    A connection that was already open when the scope started is never
    closed by it.
    """

    @contextmanager
    def scoped(self, adapter: BaseAdapter, db: ConnectionDescriptor) -> Generator[bool, None, None]:
        """Ensure ``db`` is connected for the body of the ``with`` block.

        Yields:
            True if this scope opened the connection.

        Raises:
            ConnectionFailureError: If the ephemeral connect fails; the body
                does not run.
        """
        opened = False
        if db.handle is None:
            try:
                adapter.connect(db)
            except ConnectionFailureError:
                logger.error(f"Failed to connect to db on {db.host}")
                raise
            except DatabaseError as e:
                logger.error(f"Failed to connect to db on {db.host}")
                raise ConnectionFailureError(e.message, code=e.code, backend=e.backend) from e
            opened = True
            logger.debug(f"Opened ephemeral connection '{db.alias}'")

        try:
            yield opened
        finally:
            if opened:
                self._close(adapter, db)

    @staticmethod
    def _close(adapter: BaseAdapter, db: ConnectionDescriptor) -> None:
        try:
            adapter.disconnect(db)
            logger.debug(f"Closed ephemeral connection '{db.alias}'")
        except DatabaseError as e:
            logger.warning(f"Error closing ephemeral connection '{db.alias}': {e}")
        finally:
            db.handle = None
