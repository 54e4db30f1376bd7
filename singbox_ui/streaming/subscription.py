"""
Push-stream subscription with automatic reconnection.

A subscription owns one background thread that connects, reads and
decodes messages, and reconnects after a fixed delay whenever the
underlying connection fails or closes. It never gives up on its own;
``close()`` is the only way to end it.
"""

import logging
import threading
from typing import Any, Callable, Optional, Protocol

from .backoff import BackoffStrategy, FixedBackoff

DEFAULT_RECONNECT_DELAY = 3.0


class StreamHandle(Protocol):
    """A connected stream as produced by a source factory."""

    def recv(self) -> Any:
        """Block for the next raw message; empty/None means closed."""
        ...

    def close(self) -> None:
        ...


class ReconnectingSubscription:
    """
    Delivers an ordered sequence of decoded messages from a push source.

    Messages that fail to decode are logged and dropped; the stream stays
    open. After ``close()`` returns, no further message is delivered.
    """

    def __init__(self,
                 name: str,
                 source_factory: Callable[[], StreamHandle],
                 on_message: Callable[[Any], None],
                 decode: Callable[[Any], Any],
                 backoff: Optional[BackoffStrategy] = None):
        """
        Initialize the subscription.

        Args:
            name: Stream name used in logs and thread names
            source_factory: Produces a fresh connected handle per attempt
            on_message: Called with each decoded message, in stream order
            decode: Turns a raw message into a domain object; may raise
            backoff: Reconnection delay strategy (fixed 3s if omitted)
        """
        self.logger = logging.getLogger(__name__)
        self.name = name
        self.source_factory = source_factory
        self.on_message = on_message
        self.decode = decode
        self.backoff = backoff or FixedBackoff(DEFAULT_RECONNECT_DELAY)

        self._closed = threading.Event()
        self._lock = threading.RLock()
        self._handle: Optional[StreamHandle] = None
        self._thread: Optional[threading.Thread] = None

        # Statistics
        self._stats = {
            'connect_attempts': 0,
            'connections': 0,
            'messages_delivered': 0,
            'messages_dropped': 0
        }

    def open(self) -> 'ReconnectingSubscription':
        """Start the reader thread. Returns self for chaining."""
        with self._lock:
            if self._closed.is_set():
                raise RuntimeError(f"Subscription {self.name} is closed")
            if self._thread and self._thread.is_alive():
                return self
            self._thread = threading.Thread(
                target=self._run,
                name=f"Subscription-{self.name}",
                daemon=True
            )
            self._thread.start()
        self.logger.info(f"Subscription {self.name} opened")
        return self

    def close(self, timeout: float = 1.0):
        """
        Stop the subscription.

        Idempotent. Cancels any pending reconnection, aborts the current
        connection, and discards the result of an in-flight attempt.
        """
        with self._lock:
            if self._closed.is_set():
                return
            self._closed.set()
            handle = self._handle
            self._handle = None

        if handle is not None:
            self._close_handle(handle)

        thread = self._thread
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=timeout)
        self.logger.info(f"Subscription {self.name} closed")

    def is_closed(self) -> bool:
        return self._closed.is_set()

    def get_stats(self) -> dict:
        with self._lock:
            return dict(self._stats)

    def _run(self):
        attempt = 0
        while not self._closed.is_set():
            attempt += 1
            with self._lock:
                self._stats['connect_attempts'] += 1

            handle = self._connect()
            if handle is not None:
                attempt = 0
                try:
                    self._pump(handle)
                except Exception as e:
                    if not self._closed.is_set():
                        self.logger.warning(f"Stream {self.name} failed: {e}")
                finally:
                    with self._lock:
                        if self._handle is handle:
                            self._handle = None
                    self._close_handle(handle)

            if self._closed.is_set():
                break

            delay = self.backoff.get_delay(max(attempt, 1))
            self.logger.warning(f"Stream {self.name} disconnected, reconnecting in {delay:.1f}s")
            if self._closed.wait(delay):
                break

    def _connect(self) -> Optional[StreamHandle]:
        try:
            handle = self.source_factory()
        except Exception as e:
            self.logger.warning(f"Stream {self.name} connect failed: {e}")
            return None

        with self._lock:
            if self._closed.is_set():
                # Closed while connecting
                discard = True
            else:
                discard = False
                self._handle = handle
                self._stats['connections'] += 1

        if discard:
            self._close_handle(handle)
            return None

        self.logger.info(f"Stream {self.name} connected")
        return handle

    def _pump(self, handle: StreamHandle):
        while not self._closed.is_set():
            raw = handle.recv()
            if raw is None or raw == '' or raw == b'':
                return

            try:
                message = self.decode(raw)
            except Exception as e:
                with self._lock:
                    self._stats['messages_dropped'] += 1
                self.logger.warning(f"Dropping malformed {self.name} message: {e}")
                continue

            with self._lock:
                if self._closed.is_set():
                    return
                try:
                    self.on_message(message)
                    self._stats['messages_delivered'] += 1
                except Exception as e:
                    self.logger.error(f"Error in {self.name} message handler: {e}")

    def _close_handle(self, handle: StreamHandle):
        try:
            handle.close()
        except Exception as e:
            self.logger.debug(f"Error closing {self.name} stream: {e}")


def open_subscription(name: str,
                      source_factory: Callable[[], StreamHandle],
                      on_message: Callable[[Any], None],
                      decode: Callable[[Any], Any],
                      backoff: Optional[BackoffStrategy] = None) -> ReconnectingSubscription:
    """Create and start a subscription."""
    return ReconnectingSubscription(name, source_factory, on_message, decode, backoff).open()
