"""
Start, stop and restart commands for the proxy core.

The manager applies a command asynchronously, so after each accepted
command the status is polled right away and once more after a short
delay to pick up the settled state.
"""

import logging
import threading
from typing import Callable, Optional, Set

from ..api.client import ControlPlaneClient
from ..api.errors import ClientError
from ..error_handling.error_manager import ErrorManager

START_STOP_REPOLL_DELAY = 1.0
RESTART_REPOLL_DELAY = 2.0


class ServiceController:
    """Issues lifecycle commands and schedules follow-up status polls."""

    def __init__(self, client: ControlPlaneClient,
                 refresh_status: Callable[[], None],
                 error_manager: Optional[ErrorManager] = None,
                 start_stop_delay: float = START_STOP_REPOLL_DELAY,
                 restart_delay: float = RESTART_REPOLL_DELAY):
        self.logger = logging.getLogger(__name__)
        self.client = client
        self.refresh_status = refresh_status
        self.error_manager = error_manager or ErrorManager()
        self.start_stop_delay = start_stop_delay
        self.restart_delay = restart_delay

        self._lock = threading.Lock()
        self._timers: Set[threading.Timer] = set()
        self._shutdown = False

    def start(self) -> bool:
        return self._command("Start", self.client.start, self.start_stop_delay)

    def stop(self) -> bool:
        return self._command("Stop", self.client.stop, self.start_stop_delay)

    def restart(self) -> bool:
        return self._command("Restart", self.client.restart, self.restart_delay)

    def pending_repolls(self) -> int:
        with self._lock:
            return len(self._timers)

    def shutdown(self):
        """Cancel scheduled re-polls; later commands schedule none."""
        with self._lock:
            self._shutdown = True
            timers = list(self._timers)
            self._timers.clear()
        for timer in timers:
            timer.cancel()

    def _command(self, action: str, send: Callable[[], object], delay: float) -> bool:
        try:
            send()
        except ClientError as e:
            self.error_manager.report(e, action)
            return False

        self.logger.info(f"{action} command accepted")
        self._safe_refresh()
        self._schedule_repoll(delay)
        return True

    def _schedule_repoll(self, delay: float):
        timer = None

        def fire():
            with self._lock:
                self._timers.discard(timer)
            self._safe_refresh()

        timer = threading.Timer(delay, fire)
        timer.daemon = True
        with self._lock:
            if self._shutdown:
                return
            self._timers.add(timer)
        timer.start()

    def _safe_refresh(self):
        try:
            self.refresh_status()
        except Exception as e:
            self.logger.error(f"Status refresh failed: {e}")
