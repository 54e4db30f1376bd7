"""
Websocket stream sources and message decoders.
"""

import json
import logging
from typing import Any, Callable, Optional

import websocket

from ..api.errors import DecodeError
from ..models.log_entry import LogEntry
from ..models.traffic import TrafficSample


class WebSocketSource:
    """Adapts a websocket-client connection to the stream handle interface."""

    def __init__(self, ws: websocket.WebSocket):
        self._ws = ws

    def recv(self) -> Any:
        try:
            return self._ws.recv()
        except websocket.WebSocketConnectionClosedException:
            return None

    def close(self):
        # abort() wakes a reader blocked in recv() on another thread
        try:
            self._ws.abort()
        finally:
            self._ws.shutdown()


def websocket_source_factory(url: str,
                             connect_timeout: Optional[float] = 10.0) -> Callable[[], WebSocketSource]:
    """
    Build a source factory that opens a new websocket per call.

    The timeout applies to the handshake only; an idle stream is not an error.
    """
    logger = logging.getLogger(__name__)

    def factory() -> WebSocketSource:
        logger.debug(f"Connecting to {url}")
        ws = websocket.create_connection(url, timeout=connect_timeout)
        ws.settimeout(None)
        return WebSocketSource(ws)

    return factory


def _load_json(raw: Any) -> Any:
    if isinstance(raw, bytes):
        raw = raw.decode('utf-8')
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Invalid JSON message: {e}") from e


def decode_log_entry(raw: Any) -> LogEntry:
    """Decode one log stream message."""
    data = _load_json(raw)
    if not isinstance(data, dict):
        raise DecodeError(f"Expected a log object, got {type(data).__name__}")
    try:
        return LogEntry.from_dict(data)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Invalid log entry: {e}") from e


def decode_traffic_sample(raw: Any) -> TrafficSample:
    """Decode one traffic stream message."""
    data = _load_json(raw)
    if not isinstance(data, dict):
        raise DecodeError(f"Expected a traffic object, got {type(data).__name__}")
    try:
        return TrafficSample.from_dict(data)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Invalid traffic sample: {e}") from e
