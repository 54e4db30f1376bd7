"""
Local state for the sing-box UI client.

The store mirrors remote state; the traffic history and connection
view are projections derived from it.
"""

from .store import ClientStateStore, StoreField, StoreSnapshot
from .traffic_history import TrafficHistoryBuffer, TrafficPoint
from .connection_view import (
    ConnectionView, ConnectionRow, filter_connections, format_bytes, format_rate, format_elapsed
)

__all__ = [
    'ClientStateStore',
    'StoreField',
    'StoreSnapshot',
    'TrafficHistoryBuffer',
    'TrafficPoint',
    'ConnectionView',
    'ConnectionRow',
    'filter_connections',
    'format_bytes',
    'format_rate',
    'format_elapsed'
]
