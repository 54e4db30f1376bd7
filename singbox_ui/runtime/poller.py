"""
Fixed-interval polling thread.
"""

import logging
import threading
from typing import Callable, Optional


class Poller:
    """
    Calls ``poll`` immediately and then every ``interval`` seconds.

    Each poll is independent: a slow poll delays the next one but never
    stops the loop, and an exception from ``poll`` is logged.
    """

    def __init__(self, name: str, interval: float, poll: Callable[[], None]):
        if interval <= 0:
            raise ValueError("Poll interval must be positive")
        self.logger = logging.getLogger(__name__)
        self.name = name
        self.interval = interval
        self.poll = poll

        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._poll_count = 0

    def start(self):
        if self._thread and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            name=f"Poller-{self.name}",
            daemon=True
        )
        self._thread.start()
        self.logger.debug(f"Poller {self.name} started ({self.interval}s)")

    def stop(self, timeout: float = 2.0):
        self._stop_event.set()

        thread = self._thread
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=timeout)

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    @property
    def poll_count(self) -> int:
        return self._poll_count

    def poll_now(self):
        """Run one poll on the calling thread."""
        self._safe_poll()

    def _poll_loop(self):
        while not self._stop_event.is_set():
            self._safe_poll()
            if self._stop_event.wait(self.interval):
                break

    def _safe_poll(self):
        self._poll_count += 1
        try:
            self.poll()
        except Exception as e:
            self.logger.error(f"Error in {self.name} poll: {e}")
