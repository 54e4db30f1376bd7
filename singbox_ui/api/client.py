"""
HTTP client for the manager's control-plane API.

Every call either returns the decoded payload or raises one of the
errors from ``singbox_ui.api.errors``; no call retries on its own.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, TypeVar
from urllib.parse import quote

import requests

from .errors import DecodeError, RemoteRejection, TransportError
from ..models.app_config import AppConfig
from ..models.app_status import StatusSnapshot
from ..models.connection import Connection
from ..models.log_entry import LogEntry
from ..models.traffic import TrafficSample

T = TypeVar('T')

CONFIG_SECTIONS = ('dns', 'route', 'outbounds', 'inbounds')


class ControlPlaneClient:
    """
    Thin wrapper over the manager's REST API.

    Uses a shared ``requests.Session`` so connections are reused across
    the status and connection pollers.
    """

    def __init__(self, base_url: str, timeout: Optional[float] = 10.0,
                 session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            base_url: API root, e.g. ``http://127.0.0.1:8080/api``
            timeout: Per-request timeout in seconds (None waits forever)
            session: Session to use; a new one is created if omitted
        """
        self.logger = logging.getLogger(__name__)
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({'Content-Type': 'application/json'})

    def close(self):
        """Release pooled connections."""
        self.session.close()

    def stream_url(self, name: str) -> str:
        """Websocket URL for the ``logs`` or ``traffic`` stream."""
        if self.base_url.startswith('https://'):
            root = 'wss://' + self.base_url[len('https://'):]
        elif self.base_url.startswith('http://'):
            root = 'ws://' + self.base_url[len('http://'):]
        else:
            root = self.base_url
        return f"{root}/{name}/ws"

    # Status & control

    def get_status(self) -> StatusSnapshot:
        return self._decode(StatusSnapshot.from_dict, self._request('GET', '/status'))

    def start(self):
        return self._request('POST', '/start')

    def stop(self):
        return self._request('POST', '/stop')

    def restart(self):
        return self._request('POST', '/restart')

    # App config

    def get_app_config(self) -> AppConfig:
        return self._decode(AppConfig.from_dict, self._request('GET', '/app-config'))

    def set_app_config(self, config: AppConfig):
        return self._request('PUT', '/app-config', config.to_dict())

    # sing-box config

    def get_singbox_config(self) -> Dict[str, Any]:
        return self._request('GET', '/config')

    def set_singbox_config(self, config: Dict[str, Any]):
        return self._request('PUT', '/config', config)

    def get_config_section(self, section: str) -> Any:
        """Fetch one of ``dns``, ``route``, ``outbounds``, ``inbounds``."""
        return self._request('GET', self._section_path(section))

    def set_config_section(self, section: str, value: Any) -> Any:
        return self._request('PUT', self._section_path(section), value)

    def get_dns(self) -> Dict[str, Any]:
        return self.get_config_section('dns')

    def set_dns(self, dns: Dict[str, Any]):
        return self.set_config_section('dns', dns)

    def get_route(self) -> Dict[str, Any]:
        return self.get_config_section('route')

    def set_route(self, route: Dict[str, Any]):
        return self.set_config_section('route', route)

    def get_outbounds(self) -> List[Dict[str, Any]]:
        return self.get_config_section('outbounds') or []

    def set_outbounds(self, outbounds: List[Dict[str, Any]]):
        return self.set_config_section('outbounds', outbounds)

    def get_inbounds(self) -> List[Dict[str, Any]]:
        return self.get_config_section('inbounds') or []

    def set_inbounds(self, inbounds: List[Dict[str, Any]]):
        return self.set_config_section('inbounds', inbounds)

    # Subscription

    def subscribe(self, url: str, name: Optional[str] = None) -> int:
        """Import nodes from a subscription URL; returns the imported count."""
        payload = self._request('POST', '/subscribe', {'url': url, 'name': name or ''})
        return self._decode(lambda p: int(p.get('imported', 0)), payload or {})

    # Monitoring

    def get_connections(self) -> List[Connection]:
        payload = self._request('GET', '/connections') or {}
        return self._decode(
            lambda p: [Connection.from_dict(c) for c in (p.get('connections') or [])],
            payload
        )

    def close_connection(self, connection_id: str):
        return self._request('DELETE', f"/connections/{quote(connection_id, safe='')}")

    def get_traffic(self) -> TrafficSample:
        return self._decode(TrafficSample.from_dict, self._request('GET', '/traffic'))

    def get_proxies(self) -> Dict[str, Any]:
        return self._request('GET', '/proxies') or {}

    def select_proxy(self, group: str, name: str):
        return self._request('PUT', f"/proxies/{quote(group, safe='')}", {'name': name})

    def get_logs(self) -> List[LogEntry]:
        payload = self._request('GET', '/logs') or []
        return self._decode(lambda p: [LogEntry.from_dict(e) for e in p], payload)

    # Internals

    def _section_path(self, section: str) -> str:
        if section not in CONFIG_SECTIONS:
            raise ValueError(f"Unknown config section: {section}")
        return f"/config/{section}"

    def _request(self, method: str, path: str, body: Any = None) -> Any:
        """
        Perform one request.

        Returns:
            Decoded JSON body, or None for 204/empty responses

        Raises:
            TransportError: If the request could not be completed
            RemoteRejection: If the manager answered with a non-2xx status
            DecodeError: If a 2xx body is not valid JSON
        """
        url = self.base_url + path
        self.logger.debug(f"{method} {url}")

        kwargs = {'timeout': self.timeout}
        if body is not None:
            kwargs['json'] = body

        try:
            response = self.session.request(method, url, **kwargs)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        if not response.ok:
            raise RemoteRejection(self._error_message(response), response.status_code)

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(f"Invalid JSON from {method} {path}: {e}") from e

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        """Pick the ``error`` field, falling back to the status text."""
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get('error'):
            return str(body['error'])
        return response.reason or f"HTTP {response.status_code}"

    @staticmethod
    def _decode(decoder: Callable[[Any], T], payload: Any) -> T:
        try:
            return decoder(payload)
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            raise DecodeError(f"Unexpected payload: {e}") from e
