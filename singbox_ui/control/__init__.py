"""
Operator actions against the manager.

Each controller returns a success flag (or a result, None on failure)
and reports failures through the runtime's ErrorManager.
"""

from .config_editor import ConfigEditor, parse_json
from .connections import ConnectionCloser
from .proxy_groups import ProxyGroupController
from .service import ServiceController

__all__ = [
    'ConfigEditor',
    'parse_json',
    'ConnectionCloser',
    'ProxyGroupController',
    'ServiceController'
]
