"""
Data models for the sing-box UI client.

This module contains the data structures mirrored from the manager
service: process status, traffic samples, log lines, connections,
operator configuration, inbound listeners, and proxy groups.
"""

from .app_status import AppStatus, StatusSnapshot
from .traffic import TrafficSample
from .log_entry import LogEntry, LogLevel
from .connection import Connection, ConnectionMetadata
from .app_config import AppConfig, ProxyMode
from .inbound import InboundSpec, TunInbound, TProxyInbound, RedirectInbound, MixedInbound
from .proxy_group import ProxyGroup, ProxyGroupType, parse_proxy_groups, count_nodes

__all__ = [
    'AppStatus',
    'StatusSnapshot',
    'TrafficSample',
    'LogEntry',
    'LogLevel',
    'Connection',
    'ConnectionMetadata',
    'AppConfig',
    'ProxyMode',
    'InboundSpec',
    'TunInbound',
    'TProxyInbound',
    'RedirectInbound',
    'MixedInbound',
    'ProxyGroup',
    'ProxyGroupType',
    'parse_proxy_groups',
    'count_nodes'
]
