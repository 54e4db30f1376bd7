# Communication module for producer-to-store update handling

from .events import (
    BaseUpdate, UpdateType, StatusUpdate, TrafficUpdate, LogUpdate, ConnectionsUpdate,
    create_status_update, create_traffic_update, create_log_update, create_connections_update
)
from .update_queue import UpdateQueue
from .dispatcher import UpdateDispatcher

__all__ = [
    # Updates
    'BaseUpdate', 'UpdateType', 'StatusUpdate', 'TrafficUpdate', 'LogUpdate', 'ConnectionsUpdate',
    # Queue and dispatch
    'UpdateQueue', 'UpdateDispatcher',
    # Convenience functions
    'create_status_update', 'create_traffic_update', 'create_log_update', 'create_connections_update'
]
