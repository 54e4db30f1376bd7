"""
Client runtime: owns every component and their lifecycle.

Producers (the status and connection pollers, the log and traffic
subscriptions) only post updates to the update queue. The dispatcher
thread applies them to the store one at a time, so store mutations
never overlap.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, List, Optional

from ..api.channel import RemoteStateChannel, Resource
from ..api.client import ControlPlaneClient
from ..communication.dispatcher import UpdateDispatcher
from ..communication.events import (
    UpdateType, create_connections_update, create_log_update,
    create_status_update, create_traffic_update
)
from ..communication.update_queue import UpdateQueue
from ..config.client_settings import ClientSettings
from ..control.config_editor import ConfigEditor
from ..control.connections import ConnectionCloser
from ..control.proxy_groups import ProxyGroupController
from ..control.service import ServiceController
from ..error_handling.error_manager import ErrorManager
from ..state.connection_view import ConnectionView
from ..state.store import ClientStateStore, StoreField
from ..state.traffic_history import TrafficHistoryBuffer
from ..streaming.backoff import FixedBackoff
from ..streaming.sources import decode_log_entry, decode_traffic_sample, websocket_source_factory
from ..streaming.subscription import ReconnectingSubscription, StreamHandle, open_subscription
from .poller import Poller

LOGS_STREAM = 'logs'
TRAFFIC_STREAM = 'traffic'

SourceFactory = Callable[[], StreamHandle]


class ClientRuntime:
    """
    One client session against one manager.

    Create it, ``start()`` it, and ``stop()`` it on shutdown. A stopped
    runtime cannot be restarted; build a new one instead.
    """

    def __init__(self,
                 settings: Optional[ClientSettings] = None,
                 client: Optional[ControlPlaneClient] = None,
                 stream_sources: Optional[Callable[[str], SourceFactory]] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize the runtime.

        Args:
            settings: Client settings (defaults if omitted)
            client: HTTP client; built from settings if omitted
            stream_sources: Maps a stream name to its source factory;
                            websockets under the API root if omitted
            clock: Clock for traffic history timestamps
        """
        self.logger = logging.getLogger(__name__)
        self.settings = settings or ClientSettings()

        self._owns_client = client is None
        self.client = client or ControlPlaneClient(
            self.settings.base_url, timeout=self.settings.request_timeout
        )
        self.stream_sources = stream_sources or self._websocket_sources

        self.channel = RemoteStateChannel(self.client)
        self.error_manager = ErrorManager()

        # State
        self.store = ClientStateStore(log_capacity=self.settings.log_capacity)
        self.traffic_history = TrafficHistoryBuffer(
            capacity=self.settings.traffic_history_capacity, clock=clock
        )
        self.connection_view = ConnectionView(self.store)
        self.store.add_listener(StoreField.TRAFFIC, self.traffic_history.append)

        # Producer-to-store plumbing
        self.update_queue = UpdateQueue()
        self.dispatcher = UpdateDispatcher(self.update_queue)
        self._register_store_handlers()

        # Controllers
        self.service = ServiceController(self.client, self.refresh_status, self.error_manager)
        self.proxy_groups = ProxyGroupController(self.client, self.channel, self.error_manager)
        self.connections = ConnectionCloser(self.client, self.store, self.error_manager)
        self.config_editor = ConfigEditor(self.client, self.error_manager)

        # Producers
        self.status_poller = Poller('status', self.settings.status_poll_interval, self.refresh_status)
        self.connections_poller = Poller(
            'connections', self.settings.connections_poll_interval, self.refresh_connections
        )
        self._subscriptions: List[ReconnectingSubscription] = []

        self._lock = threading.Lock()
        self._started = False
        self._stopped = False

    def start(self):
        """Start the dispatcher, both pollers and both streams."""
        with self._lock:
            if self._stopped:
                raise RuntimeError("Runtime has been stopped")
            if self._started:
                return
            self._started = True

        self.logger.info(f"Starting client runtime for {self.settings.base_url}")
        self.dispatcher.start()
        self.status_poller.start()
        self.connections_poller.start()

        backoff = FixedBackoff(self.settings.reconnect_delay, self.settings.reconnect_jitter)
        self._subscriptions = [
            open_subscription(LOGS_STREAM, self.stream_sources(LOGS_STREAM),
                              self._on_log_entry, decode_log_entry, backoff),
            open_subscription(TRAFFIC_STREAM, self.stream_sources(TRAFFIC_STREAM),
                              self._on_traffic_sample, decode_traffic_sample, backoff),
        ]

    def stop(self):
        """Cancel pollers, streams and pending re-polls. Safe to call twice."""
        with self._lock:
            if self._stopped:
                return
            self._stopped = True

        self.logger.info("Stopping client runtime")
        self.status_poller.stop()
        self.connections_poller.stop()
        for subscription in self._subscriptions:
            subscription.close()
        self.service.shutdown()
        self.dispatcher.stop()

        if self._owns_client:
            self.client.close()
        self.logger.info("Client runtime stopped")

    def is_running(self) -> bool:
        with self._lock:
            return self._started and not self._stopped

    @property
    def subscriptions(self) -> List[ReconnectingSubscription]:
        return list(self._subscriptions)

    def refresh_status(self):
        """Fetch the status once; a failed fetch keeps the last value."""
        result = self.channel.fetch_once(Resource.STATUS)
        if not result.ok:
            self.logger.warning(f"Status poll failed: {result.error}")
            return
        self.update_queue.put_update(create_status_update(result.value))

    def refresh_connections(self):
        """Fetch the connection list once; a failed fetch keeps the last list."""
        result = self.channel.fetch_once(Resource.CONNECTIONS)
        if not result.ok:
            self.logger.warning(f"Connections poll failed: {result.error}")
            return
        self.update_queue.put_update(create_connections_update(result.value))

    def process_pending(self) -> int:
        """Apply queued updates on the calling thread."""
        return self.dispatcher.process_pending()

    def get_stats(self) -> dict:
        return {
            'dispatcher': self.dispatcher.get_stats(),
            'subscriptions': {s.name: s.get_stats() for s in self._subscriptions},
            'errors': self.error_manager.get_stats()
        }

    def _register_store_handlers(self):
        store = self.store
        self.dispatcher.add_handler(
            UpdateType.STATUS,
            lambda u: store.set_status(u.snapshot.status, u.snapshot.error)
        )
        self.dispatcher.add_handler(UpdateType.TRAFFIC, lambda u: store.set_traffic(u.sample))
        self.dispatcher.add_handler(UpdateType.LOG, lambda u: store.append_log(u.entry))
        self.dispatcher.add_handler(
            UpdateType.CONNECTIONS, lambda u: store.set_connections(u.connections)
        )

    def _on_log_entry(self, entry):
        self.update_queue.put_update(create_log_update(entry))

    def _on_traffic_sample(self, sample):
        self.update_queue.put_update(create_traffic_update(sample))

    def _websocket_sources(self, name: str) -> SourceFactory:
        return websocket_source_factory(
            self.client.stream_url(name), connect_timeout=self.settings.request_timeout
        )
