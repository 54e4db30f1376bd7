"""
Closing connections.

Closing is optimistic: the row leaves the local list before the manager
answers. The list is replaced wholesale on every connection poll, so a
close that failed remotely is undone by the next poll.
"""

import logging
from typing import Optional

from ..api.client import ControlPlaneClient
from ..api.errors import ClientError
from ..error_handling.error_manager import ErrorManager
from ..state.connection_view import filter_connections
from ..state.store import ClientStateStore


class ConnectionCloser:
    """Closes connections and prunes them from the store."""

    def __init__(self, client: ControlPlaneClient, store: ClientStateStore,
                 error_manager: Optional[ErrorManager] = None):
        self.logger = logging.getLogger(__name__)
        self.client = client
        self.store = store
        self.error_manager = error_manager or ErrorManager()

    def close(self, connection_id: str) -> bool:
        """
        Remove a connection locally and ask the manager to close it.

        Returns:
            True if the manager accepted the request
        """
        self.store.remove_connection(connection_id)

        try:
            self.client.close_connection(connection_id)
        except ClientError as e:
            self.error_manager.report(e, "Close connection", context={'id': connection_id})
            return False

        self.logger.info(f"Closed connection {connection_id}")
        return True

    def close_all(self, query: str = "") -> int:
        """Close every connection matching ``query``; returns how many were accepted."""
        closed = 0
        for connection in filter_connections(self.store.connections, query):
            if self.close(connection.id):
                closed += 1
        return closed
