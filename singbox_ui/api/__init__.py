"""
Control-plane access for the sing-box UI client.

This package wraps the manager's HTTP API and defines the error types
shared by every component that talks to it.
"""

from .errors import ClientError, TransportError, DecodeError, RemoteRejection, ValidationError
from .client import ControlPlaneClient
from .channel import RemoteStateChannel, FetchResult, Resource

__all__ = [
    'ClientError',
    'TransportError',
    'DecodeError',
    'RemoteRejection',
    'ValidationError',
    'ControlPlaneClient',
    'RemoteStateChannel',
    'FetchResult',
    'Resource'
]
