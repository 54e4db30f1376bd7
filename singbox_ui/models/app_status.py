"""
Status model for the remote proxy process.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class AppStatus(Enum):
    """Lifecycle states reported by the remote process."""
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    ERROR = "error"


STATUS_LABELS = {
    AppStatus.STOPPED: "Stopped",
    AppStatus.STARTING: "Starting...",
    AppStatus.RUNNING: "Running",
    AppStatus.STOPPING: "Stopping...",
    AppStatus.ERROR: "Error",
}


@dataclass(frozen=True)
class StatusSnapshot:
    """
    Mirrored status of the remote proxy process.

    The client never computes transitions itself; it stores whatever
    the last successful poll reported.

    Attributes:
        status: Lifecycle state
        error: Error text reported alongside the state (empty if none)
    """
    status: AppStatus = AppStatus.STOPPED
    error: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StatusSnapshot':
        """Create a snapshot from a ``GET /status`` payload."""
        raw = data.get('status')
        try:
            status = AppStatus(raw)
        except ValueError:
            raise ValueError(f"Invalid status: {raw!r}")
        return cls(status=status, error=data.get('error') or '')

    def to_dict(self) -> Dict[str, Any]:
        return {'status': self.status.value, 'error': self.error}

    def is_running(self) -> bool:
        """Check if the proxy process is running."""
        return self.status == AppStatus.RUNNING

    def is_busy(self) -> bool:
        """Check if the proxy process is between states."""
        return self.status in (AppStatus.STARTING, AppStatus.STOPPING)

    def get_status_text(self) -> str:
        """Get human-readable status text."""
        label = STATUS_LABELS[self.status]
        if self.error:
            return f"{label}: {self.error}"
        return label

    @property
    def status_error(self) -> Optional[str]:
        return self.error or None
