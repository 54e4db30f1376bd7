"""
Update events posted by pollers and streams.

Producers run on their own threads; they describe the change they
observed as an event and leave applying it to the dispatcher thread.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from ..models.app_status import StatusSnapshot
from ..models.connection import Connection
from ..models.log_entry import LogEntry
from ..models.traffic import TrafficSample


class UpdateType(Enum):
    """Kinds of store updates."""
    STATUS = "status"
    TRAFFIC = "traffic"
    LOG = "log"
    CONNECTIONS = "connections"


@dataclass
class BaseUpdate:
    """Base class for all updates."""
    update_type: UpdateType
    timestamp: Optional[datetime]

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now()


@dataclass
class StatusUpdate(BaseUpdate):
    """A status poll succeeded."""
    snapshot: StatusSnapshot

    def __post_init__(self):
        super().__post_init__()
        self.update_type = UpdateType.STATUS


@dataclass
class TrafficUpdate(BaseUpdate):
    """A traffic sample arrived."""
    sample: TrafficSample

    def __post_init__(self):
        super().__post_init__()
        self.update_type = UpdateType.TRAFFIC


@dataclass
class LogUpdate(BaseUpdate):
    """A log line arrived."""
    entry: LogEntry

    def __post_init__(self):
        super().__post_init__()
        self.update_type = UpdateType.LOG


@dataclass
class ConnectionsUpdate(BaseUpdate):
    """A connection poll succeeded."""
    connections: Tuple[Connection, ...]

    def __post_init__(self):
        super().__post_init__()
        self.update_type = UpdateType.CONNECTIONS
        self.connections = tuple(self.connections)


# Convenience functions for creating updates
def create_status_update(snapshot: StatusSnapshot) -> StatusUpdate:
    return StatusUpdate(update_type=UpdateType.STATUS, timestamp=None, snapshot=snapshot)


def create_traffic_update(sample: TrafficSample) -> TrafficUpdate:
    return TrafficUpdate(update_type=UpdateType.TRAFFIC, timestamp=None, sample=sample)


def create_log_update(entry: LogEntry) -> LogUpdate:
    return LogUpdate(update_type=UpdateType.LOG, timestamp=None, entry=entry)


def create_connections_update(connections) -> ConnectionsUpdate:
    return ConnectionsUpdate(update_type=UpdateType.CONNECTIONS, timestamp=None,
                             connections=tuple(connections))
