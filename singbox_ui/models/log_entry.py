"""
Log entry model for the log stream.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict

from .timeutil import parse_timestamp


class LogLevel(Enum):
    """Log levels emitted by the proxy process."""
    INFO = "info"
    DEBUG = "debug"
    WARN = "warn"
    ERROR = "error"


KNOWN_LEVELS = {level.value for level in LogLevel}


@dataclass(frozen=True)
class LogEntry:
    """
    A single line from the remote log stream.

    Attributes:
        time: When the remote emitted the line
        level: Level name; unrecognized levels are kept verbatim
        message: Log text
    """
    time: datetime
    level: str
    message: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LogEntry':
        """
        Decode a stream message.

        Raises:
            ValueError: If the time field is missing or malformed
        """
        return cls(
            time=parse_timestamp(data.get('time')),
            level=str(data.get('level') or ''),
            message=str(data.get('message') or '')
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'time': self.time.isoformat(),
            'level': self.level,
            'message': self.message
        }

    def is_known_level(self) -> bool:
        return self.level in KNOWN_LEVELS

    def get_level_label(self) -> str:
        """Get the short display label (``INFO``, ``WARN``, ``ERRO``...)."""
        return self.level.upper()[:4]
