"""
Filtering and formatting over the live connection list.

Everything here is a pure projection: nothing is cached and the
underlying list is never modified.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

from ..models.connection import Connection

KB = 1024
MB = 1024 * 1024


def format_bytes(num_bytes: float) -> str:
    """Humanize a byte count: ``512B``, ``2.0KB``, ``3.00MB``."""
    if num_bytes < KB:
        return f"{int(num_bytes)}B"
    if num_bytes < MB:
        return f"{num_bytes / KB:.1f}KB"
    return f"{num_bytes / MB:.2f}MB"


def format_rate(bytes_per_second: float) -> str:
    """Humanize a transfer rate: ``512 B/s``, ``2.0 KB/s``, ``3.00 MB/s``."""
    if bytes_per_second < KB:
        return f"{int(bytes_per_second)} B/s"
    if bytes_per_second < MB:
        return f"{bytes_per_second / KB:.1f} KB/s"
    return f"{bytes_per_second / MB:.2f} MB/s"


def format_elapsed(seconds: float) -> str:
    """Humanize a duration: ``45s``, ``2m``, ``2h`` (floored)."""
    s = max(0, math.floor(seconds))
    if s < 60:
        return f"{s}s"
    if s < 3600:
        return f"{s // 60}m"
    return f"{s // 3600}h"


def connection_age(connection: Connection, now: Optional[datetime] = None) -> str:
    """Elapsed time since the connection opened, or empty if unknown."""
    if connection.start is None:
        return ""
    now = now or datetime.now(timezone.utc)
    return format_elapsed((now - connection.start).total_seconds())


def matches(connection: Connection, query: str) -> bool:
    """
    Case-insensitive match against host, destination IP, rule and chains.

    An empty query matches everything.
    """
    if not query:
        return True
    q = query.lower()
    metadata = connection.metadata
    candidates = [metadata.host, metadata.destination_ip, connection.rule]
    candidates.extend(connection.chains)
    return any(c and q in c.lower() for c in candidates)


def filter_connections(connections: Iterable[Connection], query: str) -> List[Connection]:
    """Subsequence of connections matching the query, order preserved."""
    return [c for c in connections if matches(c, query)]


def host_label(connection: Connection) -> str:
    metadata = connection.metadata
    return metadata.host or metadata.destination_ip or "unknown"


def endpoint_label(connection: Connection) -> str:
    metadata = connection.metadata
    return (f"{metadata.source_ip or ''}:{metadata.source_port or ''}"
            f" → :{metadata.destination_port or ''}")


def chain_label(connection: Connection) -> str:
    return " → ".join(connection.chains)


def rule_label(connection: Connection) -> str:
    if connection.rule_payload:
        return f"{connection.rule} ({connection.rule_payload})"
    return connection.rule


def network_label(connection: Connection) -> str:
    return (connection.metadata.network or "").upper()


@dataclass(frozen=True)
class ConnectionRow:
    """Display-ready projection of one connection."""
    id: str
    host: str
    endpoint: str
    network: str
    chain: str
    rule: str
    upload: str
    download: str
    age: str


class ConnectionView:
    """Query surface over a connection source, recomputed per call."""

    def __init__(self, source):
        """
        Args:
            source: Object with a ``connections`` attribute (usually the store)
        """
        self.source = source

    def query(self, query: str = "") -> List[Connection]:
        return filter_connections(self.source.connections, query)

    def rows(self, query: str = "", now: Optional[datetime] = None) -> List[ConnectionRow]:
        now = now or datetime.now(timezone.utc)
        return [to_row(c, now) for c in self.query(query)]

    def empty_message(self, query: str = "") -> Optional[str]:
        """Placeholder text when nothing is shown, else None."""
        connections: Sequence[Connection] = self.source.connections
        if not connections:
            return "No active connections"
        if not filter_connections(connections, query):
            return "No matching connections"
        return None


def to_row(connection: Connection, now: Optional[datetime] = None) -> ConnectionRow:
    return ConnectionRow(
        id=connection.id,
        host=host_label(connection),
        endpoint=endpoint_label(connection),
        network=network_label(connection),
        chain=chain_label(connection),
        rule=rule_label(connection),
        upload=format_bytes(connection.upload),
        download=format_bytes(connection.download),
        age=connection_age(connection, now)
    )
