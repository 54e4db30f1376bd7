"""
Request/response channel used by pollers and editors.

The channel isolates transport failures from the state logic above it:
``fetch_once`` never raises client errors, it returns them.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from .client import ControlPlaneClient
from .errors import ClientError

T = TypeVar('T')


class Resource(Enum):
    """Remote resources that can be fetched as a snapshot."""
    STATUS = "status"
    CONNECTIONS = "connections"
    PROXIES = "proxies"
    APP_CONFIG = "app_config"
    DNS = "dns"
    ROUTE = "route"
    OUTBOUNDS = "outbounds"
    INBOUNDS = "inbounds"


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Outcome of a single fetch: exactly one of value/error is meaningful."""
    value: Optional[T] = None
    error: Optional[ClientError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RemoteStateChannel:
    """Fetches snapshots of remote resources without retrying."""

    def __init__(self, client: ControlPlaneClient):
        self.logger = logging.getLogger(__name__)
        self.client = client
        self._fetchers: Dict[Resource, Callable[[], Any]] = {
            Resource.STATUS: client.get_status,
            Resource.CONNECTIONS: client.get_connections,
            Resource.PROXIES: client.get_proxies,
            Resource.APP_CONFIG: client.get_app_config,
            Resource.DNS: client.get_dns,
            Resource.ROUTE: client.get_route,
            Resource.OUTBOUNDS: client.get_outbounds,
            Resource.INBOUNDS: client.get_inbounds,
        }

    def fetch_once(self, resource: Resource) -> FetchResult:
        """
        Fetch one snapshot of a resource.

        Args:
            resource: Resource to fetch

        Returns:
            FetchResult carrying the decoded snapshot or the client error
        """
        try:
            value = self._fetchers[resource]()
        except ClientError as e:
            self.logger.debug(f"Fetch of {resource.value} failed: {e}")
            return FetchResult(error=e)
        return FetchResult(value=value)
