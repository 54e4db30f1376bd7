"""
Client settings data model.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional
import json

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class ClientSettings:
    """
    Represents the client's local settings.

    Attributes:
        base_url: Root of the manager's HTTP API
        status_poll_interval: Seconds between status polls
        connections_poll_interval: Seconds between connection polls
        reconnect_delay: Minimum seconds between stream reconnection attempts
        reconnect_jitter: Fraction of the delay added at random (0 disables)
        request_timeout: Per-request timeout in seconds (None waits forever)
        log_level: Logging level name
        log_capacity: Maximum log entries kept in memory
        traffic_history_capacity: Traffic samples kept for charting
    """
    base_url: str = "http://127.0.0.1:8080/api"
    status_poll_interval: float = 3.0
    connections_poll_interval: float = 3.0
    reconnect_delay: float = 3.0
    reconnect_jitter: float = 0.0
    request_timeout: Optional[float] = 10.0
    log_level: str = "INFO"
    log_capacity: int = 500
    traffic_history_capacity: int = 60

    def __post_init__(self):
        """Validate settings after initialization."""
        self._validate()

    def _validate(self):
        """Validate client settings."""
        if not self.base_url.startswith(('http://', 'https://')):
            raise ValueError(f"Invalid base URL: {self.base_url}. Must start with http:// or https://")

        for name in ('status_poll_interval', 'connections_poll_interval'):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")

        if self.reconnect_delay < 0:
            raise ValueError("Reconnect delay cannot be negative")

        if not (0.0 <= self.reconnect_jitter <= 1.0):
            raise ValueError("Reconnect jitter must be between 0.0 and 1.0")

        if self.request_timeout is not None and self.request_timeout <= 0:
            raise ValueError("Request timeout must be positive")

        self.log_level = self.log_level.upper()
        if self.log_level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}")

        if self.log_capacity < 1:
            raise ValueError("Log capacity must be positive")

        if self.traffic_history_capacity < 1:
            raise ValueError("Traffic history capacity must be positive")

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary for serialization."""
        return {
            'base_url': self.base_url,
            'status_poll_interval': self.status_poll_interval,
            'connections_poll_interval': self.connections_poll_interval,
            'reconnect_delay': self.reconnect_delay,
            'reconnect_jitter': self.reconnect_jitter,
            'request_timeout': self.request_timeout,
            'log_level': self.log_level,
            'log_capacity': self.log_capacity,
            'traffic_history_capacity': self.traffic_history_capacity
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ClientSettings':
        """Create settings from dictionary, ignoring unknown keys."""
        known_keys = set(cls().to_dict())
        filtered_data = {k: v for k, v in data.items() if k in known_keys}
        return cls(**filtered_data)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> 'ClientSettings':
        return cls.from_dict(json.loads(json_str))
