"""
Runtime lifecycle for the sing-box UI client.
"""

from .client_runtime import ClientRuntime
from .poller import Poller

__all__ = ['ClientRuntime', 'Poller']
