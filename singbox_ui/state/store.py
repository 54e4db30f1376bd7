"""
Client state store - the single source of truth observed by the UI.

The store holds the mirrored process status, the latest traffic sample,
a bounded log buffer and the connection list. Each setter replaces its
field atomically and then notifies the listeners of that field.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Tuple

from ..models.app_status import AppStatus, StatusSnapshot
from ..models.connection import Connection
from ..models.log_entry import LogEntry
from ..models.traffic import TrafficSample

DEFAULT_LOG_CAPACITY = 500


class StoreField(Enum):
    """Observable fields of the store."""
    STATUS = "status"
    TRAFFIC = "traffic"
    LOGS = "logs"
    CONNECTIONS = "connections"


@dataclass(frozen=True)
class StoreSnapshot:
    """Consistent read of every field at one point in time."""
    status: StatusSnapshot
    traffic: TrafficSample
    logs: Tuple[LogEntry, ...]
    connections: Tuple[Connection, ...]


class ClientStateStore:
    """
    Mutable mirror of the remote process state.

    Create one per client runtime; tests create as many as they need.
    """

    def __init__(self, log_capacity: int = DEFAULT_LOG_CAPACITY):
        """
        Initialize the store.

        Args:
            log_capacity: Maximum log entries kept; oldest are discarded
        """
        if log_capacity < 1:
            raise ValueError("Log capacity must be positive")

        self.logger = logging.getLogger(__name__)
        self.log_capacity = log_capacity

        self._lock = threading.RLock()
        self._status = StatusSnapshot()
        self._traffic = TrafficSample()
        self._logs: deque = deque(maxlen=log_capacity)
        self._connections: Tuple[Connection, ...] = ()

        self._listeners: Dict[StoreField, List[Callable[[Any], None]]] = {
            store_field: [] for store_field in StoreField
        }

    # Listeners

    def add_listener(self, store_field: StoreField, callback: Callable[[Any], None]):
        """
        Register a callback for changes to a field.

        The callback receives the new value (for LOGS, the appended entry).
        """
        with self._lock:
            self._listeners[store_field].append(callback)

    def remove_listener(self, store_field: StoreField, callback: Callable[[Any], None]):
        with self._lock:
            if callback in self._listeners[store_field]:
                self._listeners[store_field].remove(callback)

    # Setters

    def set_status(self, status: AppStatus, error: str = ""):
        """Replace the mirrored status and its error text."""
        snapshot = StatusSnapshot(status=status, error=error or "")
        with self._lock:
            changed = snapshot != self._status
            self._status = snapshot
        if changed:
            self.logger.info(f"Proxy status: {snapshot.get_status_text()}")
        self._notify(StoreField.STATUS, snapshot)

    def append_log(self, entry: LogEntry):
        """Append a log entry, discarding the oldest when full."""
        with self._lock:
            self._logs.append(entry)
        self._notify(StoreField.LOGS, entry)

    def set_traffic(self, sample: TrafficSample):
        """Replace the current traffic sample."""
        with self._lock:
            self._traffic = sample
        self._notify(StoreField.TRAFFIC, sample)

    def set_connections(self, connections: Iterable[Connection]):
        """Replace the connection list wholesale."""
        connections = tuple(connections)
        with self._lock:
            self._connections = connections
        self._notify(StoreField.CONNECTIONS, connections)

    def remove_connection(self, connection_id: str) -> bool:
        """
        Drop one connection from the current list in a single replace.

        Returns:
            True if a connection with that id was present
        """
        with self._lock:
            remaining = tuple(c for c in self._connections if c.id != connection_id)
            removed = len(remaining) != len(self._connections)
            self._connections = remaining
        if removed:
            self._notify(StoreField.CONNECTIONS, remaining)
        return removed

    # Readers

    @property
    def status(self) -> StatusSnapshot:
        with self._lock:
            return self._status

    @property
    def traffic(self) -> TrafficSample:
        with self._lock:
            return self._traffic

    @property
    def logs(self) -> Tuple[LogEntry, ...]:
        with self._lock:
            return tuple(self._logs)

    @property
    def connections(self) -> Tuple[Connection, ...]:
        with self._lock:
            return self._connections

    def snapshot(self) -> StoreSnapshot:
        with self._lock:
            return StoreSnapshot(
                status=self._status,
                traffic=self._traffic,
                logs=tuple(self._logs),
                connections=self._connections
            )

    def _notify(self, store_field: StoreField, value: Any):
        with self._lock:
            listeners = list(self._listeners[store_field])
        for callback in listeners:
            try:
                callback(value)
            except Exception as e:
                self.logger.error(f"Error in {store_field.value} listener: {e}")
