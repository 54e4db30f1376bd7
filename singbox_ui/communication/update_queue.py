"""
Thread-safe queue carrying updates from producers to the dispatcher.
"""

import queue
import threading
from typing import List, Optional

from .events import BaseUpdate


class UpdateQueue:
    """
    Bounded FIFO between producer threads and the dispatcher.

    Producers never wait: when the queue is full the update is dropped
    and counted, and the next poll or stream message supersedes it.
    """

    def __init__(self, max_size: int = 1000):
        self._queue: "queue.Queue[BaseUpdate]" = queue.Queue(maxsize=max_size)
        self._counts_lock = threading.Lock()
        self._accepted = 0
        self._dropped = 0

    def put_update(self, update: BaseUpdate) -> bool:
        """Enqueue an update. Returns False if it was dropped."""
        try:
            self._queue.put_nowait(update)
            accepted = True
        except queue.Full:
            accepted = False

        with self._counts_lock:
            if accepted:
                self._accepted += 1
            else:
                self._dropped += 1
        return accepted

    def get_update(self, block: bool = True, timeout: Optional[float] = None) -> Optional[BaseUpdate]:
        """Next update, or None when nothing arrives in time."""
        try:
            return self._queue.get(block=block, timeout=timeout)
        except queue.Empty:
            return None

    def get_updates_batch(self, max_updates: int = 10, timeout: float = 0.1) -> List[BaseUpdate]:
        """
        Up to ``max_updates`` updates in arrival order.

        Waits at most ``timeout`` for the first one, then takes only what
        is already queued.
        """
        first = self.get_update(timeout=timeout)
        if first is None:
            return []

        batch = [first]
        while len(batch) < max_updates:
            update = self.get_update(block=False)
            if update is None:
                break
            batch.append(update)
        return batch

    def size(self) -> int:
        return self._queue.qsize()

    def is_empty(self) -> bool:
        return self._queue.empty()

    def clear(self):
        """Discard all pending updates."""
        while self.get_update(block=False) is not None:
            pass

    def get_stats(self) -> dict:
        with self._counts_lock:
            accepted, dropped = self._accepted, self._dropped
        return {
            'current_size': self.size(),
            'total_updates': accepted,
            'dropped_updates': dropped
        }
