"""
Single-threaded dispatcher applying queued updates.

All store mutations coming from pollers and streams run on the
dispatcher thread, one at a time, in the order they were queued.
"""

import logging
import threading
from typing import Callable, Dict, List, Optional

from .events import BaseUpdate, UpdateType
from .update_queue import UpdateQueue


class UpdateDispatcher:
    """Drains the update queue and calls the handlers for each update."""

    def __init__(self, update_queue: UpdateQueue, batch_size: int = 50):
        """
        Initialize the dispatcher.

        Args:
            update_queue: Queue to drain
            batch_size: Maximum updates taken from the queue per wakeup
        """
        self.logger = logging.getLogger(__name__)
        self.update_queue = update_queue
        self.batch_size = batch_size

        self._handlers: Dict[UpdateType, List[Callable[[BaseUpdate], None]]] = {
            update_type: [] for update_type in UpdateType
        }

        # Processing control
        self._running = False
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

        # Statistics
        self._stats = {
            'updates_processed': 0,
            'handler_errors': 0
        }

    def add_handler(self, update_type: UpdateType, handler: Callable[[BaseUpdate], None]):
        """Register a handler for an update type."""
        self._handlers[update_type].append(handler)

    def remove_handler(self, update_type: UpdateType, handler: Callable[[BaseUpdate], None]):
        if handler in self._handlers[update_type]:
            self._handlers[update_type].remove(handler)

    def start(self):
        """Start dispatching on a background thread."""
        if self._running:
            return

        self._running = True
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._dispatch_loop, name="UpdateDispatcher", daemon=True)
        self._thread.start()

    def stop(self):
        """Stop dispatching; pending updates stay in the queue."""
        if not self._running:
            return

        self._running = False
        self._stop_event.set()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=1.0)

    def is_running(self) -> bool:
        return self._running

    def process_pending(self, max_updates: Optional[int] = None) -> int:
        """
        Apply queued updates on the calling thread.

        Args:
            max_updates: Upper bound on updates to apply (all pending if None)

        Returns:
            Number of updates applied
        """
        processed = 0
        while max_updates is None or processed < max_updates:
            update = self.update_queue.get_update(block=False)
            if update is None:
                break
            self._dispatch(update)
            processed += 1
        return processed

    def get_stats(self) -> dict:
        stats = dict(self._stats)
        stats['queue'] = self.update_queue.get_stats()
        return stats

    def _dispatch_loop(self):
        while not self._stop_event.is_set():
            for update in self.update_queue.get_updates_batch(self.batch_size, timeout=0.1):
                if self._stop_event.is_set():
                    break
                self._dispatch(update)

    def _dispatch(self, update: BaseUpdate):
        for handler in list(self._handlers[update.update_type]):
            try:
                handler(update)
            except Exception as e:
                self._stats['handler_errors'] += 1
                self.logger.error(f"Error in {update.update_type.value} handler: {e}")
        self._stats['updates_processed'] += 1
