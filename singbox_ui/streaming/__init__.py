"""
Push-stream handling for the sing-box UI client.

This package provides the reconnecting subscription used for the log
and traffic websockets, together with their sources and decoders.
"""

from .backoff import BackoffStrategy, FixedBackoff
from .subscription import ReconnectingSubscription, StreamHandle, open_subscription
from .sources import (
    WebSocketSource, websocket_source_factory, decode_log_entry, decode_traffic_sample
)

__all__ = [
    'BackoffStrategy',
    'FixedBackoff',
    'ReconnectingSubscription',
    'StreamHandle',
    'open_subscription',
    'WebSocketSource',
    'websocket_source_factory',
    'decode_log_entry',
    'decode_traffic_sample'
]
