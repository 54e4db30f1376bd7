"""
Reconnection delay strategies for push streams.
"""

import random
from abc import ABC, abstractmethod


class BackoffStrategy(ABC):
    """Base class for backoff strategies."""

    @abstractmethod
    def get_delay(self, attempt: int) -> float:
        """Get delay before the given reconnection attempt (1-based)."""
        pass


class FixedBackoff(BackoffStrategy):
    """
    Fixed delay with optional additive jitter.

    Jitter only ever lengthens the delay, so consecutive attempts are
    always at least ``delay`` seconds apart.
    """

    def __init__(self, delay: float = 3.0, jitter_factor: float = 0.0):
        """
        Initialize fixed backoff.

        Args:
            delay: Minimum delay between attempts in seconds
            jitter_factor: Up to this fraction of ``delay`` is added at random
        """
        if delay < 0:
            raise ValueError("Delay cannot be negative")
        if not (0.0 <= jitter_factor <= 1.0):
            raise ValueError("Jitter factor must be between 0.0 and 1.0")
        self.delay = delay
        self.jitter_factor = jitter_factor

    def get_delay(self, attempt: int) -> float:
        """Get fixed delay, plus jitter if configured."""
        if self.jitter_factor:
            return self.delay + random.uniform(0.0, self.delay * self.jitter_factor)
        return self.delay
