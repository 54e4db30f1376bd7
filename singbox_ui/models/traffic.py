"""
Traffic sample model.
"""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class TrafficSample:
    """
    Instantaneous throughput reported by the traffic stream.

    Attributes:
        up: Upload rate in bytes per second
        down: Download rate in bytes per second
    """
    up: int = 0
    down: int = 0

    def __post_init__(self):
        if self.up < 0 or self.down < 0:
            raise ValueError("Traffic rates cannot be negative")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TrafficSample':
        return cls(up=int(data.get('up', 0)), down=int(data.get('down', 0)))

    def to_dict(self) -> Dict[str, int]:
        return {'up': self.up, 'down': self.down}
