"""
Rolling traffic history for charting.
"""

import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from ..models.traffic import TrafficSample

DEFAULT_HISTORY_CAPACITY = 60


@dataclass(frozen=True)
class TrafficPoint:
    """A traffic sample stamped with its arrival time."""
    timestamp: datetime
    sample: TrafficSample


class TrafficHistoryBuffer:
    """
    Fixed-capacity window of the most recent traffic samples.

    Timestamps come from the injected clock at append time and never go
    backwards: a clock that steps back is clamped to the previous stamp.
    """

    def __init__(self, capacity: int = DEFAULT_HISTORY_CAPACITY,
                 clock: Optional[Callable[[], datetime]] = None):
        if capacity < 1:
            raise ValueError("History capacity must be positive")
        self.capacity = capacity
        self.clock = clock or datetime.now
        self._points: deque = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def append(self, sample: TrafficSample) -> TrafficPoint:
        """Stamp and append a sample, dropping the oldest when full."""
        now = self.clock()
        with self._lock:
            if self._points and now < self._points[-1].timestamp:
                now = self._points[-1].timestamp
            point = TrafficPoint(timestamp=now, sample=sample)
            self._points.append(point)
        return point

    def clear(self):
        with self._lock:
            self._points.clear()

    def points(self) -> Tuple[TrafficPoint, ...]:
        """Full ordered window, oldest first."""
        with self._lock:
            return tuple(self._points)

    def latest(self) -> Optional[TrafficPoint]:
        with self._lock:
            return self._points[-1] if self._points else None

    def peak(self) -> TrafficSample:
        """Highest up and down rates within the window."""
        points = self.points()
        if not points:
            return TrafficSample()
        return TrafficSample(
            up=max(p.sample.up for p in points),
            down=max(p.sample.down for p in points)
        )

    def to_rows(self) -> List[Dict[str, object]]:
        """Chart rows ``{'t': 'HH:MM:SS', 'up': .., 'down': ..}``."""
        return [
            {'t': p.timestamp.strftime('%H:%M:%S'), 'up': p.sample.up, 'down': p.sample.down}
            for p in self.points()
        ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._points)
