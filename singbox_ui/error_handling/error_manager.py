"""
Error management for operator-visible failures.

This module provides the ErrorManager class that records client errors,
logs them at a severity-appropriate level, and forwards them to the
registered notification callbacks (the UI's transient notifications).
"""

import logging
import threading
from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum, IntEnum
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..api.errors import ClientError, DecodeError, RemoteRejection, TransportError, ValidationError


class ErrorSeverity(IntEnum):
    """How loudly a failure is reported."""
    LOW = 1
    MEDIUM = 2
    HIGH = 3


class ErrorCategory(Enum):
    """Which layer a failure came from."""
    TRANSPORT = "transport"
    DECODE = "decode"
    REMOTE_REJECTION = "remote_rejection"
    VALIDATION = "validation"
    INTERNAL = "internal"


# ClientError subclasses to (category, severity)
_CLASSIFICATION = (
    (ValidationError, ErrorCategory.VALIDATION, ErrorSeverity.MEDIUM),
    (RemoteRejection, ErrorCategory.REMOTE_REJECTION, ErrorSeverity.HIGH),
    (TransportError, ErrorCategory.TRANSPORT, ErrorSeverity.HIGH),
    (DecodeError, ErrorCategory.DECODE, ErrorSeverity.MEDIUM),
)

_LOG_LEVELS = {
    ErrorSeverity.LOW: logging.INFO,
    ErrorSeverity.MEDIUM: logging.WARNING,
    ErrorSeverity.HIGH: logging.ERROR,
}

NotificationCallback = Callable[['ErrorInfo'], None]


@dataclass
class ErrorInfo:
    """One reported failure, as shown to the operator."""
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    details: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[Exception] = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def key(self) -> Tuple[ErrorCategory, str]:
        return self.category, self.message


class ErrorManager:
    """
    Records errors and notifies the operator.

    One instance per client runtime. Background errors passed to
    ``handle_error`` are recorded once per suppression window; failures
    of operator actions passed to ``report`` are never suppressed.
    """

    def __init__(self, max_history_size: int = 100,
                 suppression_window: timedelta = timedelta(seconds=5)):
        """
        Initialize the error manager.

        Args:
            max_history_size: Number of errors kept in history
            suppression_window: Identical errors within this window are
                                recorded once
        """
        self.logger = logging.getLogger(__name__)
        self.suppression_window = suppression_window

        self._lock = threading.RLock()
        self._history: deque = deque(maxlen=max_history_size)
        self._callbacks: List[NotificationCallback] = []
        self._last_seen: Dict[Tuple[ErrorCategory, str], datetime] = {}

        self._by_category: Counter = Counter()
        self._total = 0
        self._suppressed = 0

    def add_error_callback(self, callback: NotificationCallback):
        """Register a notification callback."""
        with self._lock:
            self._callbacks.append(callback)

    def remove_error_callback(self, callback: NotificationCallback):
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def handle_error(self,
                     category: ErrorCategory,
                     severity: ErrorSeverity,
                     message: str,
                     details: Optional[str] = None,
                     context: Optional[Dict[str, Any]] = None,
                     exception: Optional[Exception] = None,
                     suppress_duplicates: bool = True) -> ErrorInfo:
        """
        Record an error, log it and notify the callbacks.

        With ``suppress_duplicates``, a duplicate inside the suppression
        window is counted but neither recorded nor notified.

        Returns:
            ErrorInfo describing the error
        """
        error = ErrorInfo(category, severity, message, details, dict(context or {}), exception)

        with self._lock:
            if suppress_duplicates and self._is_duplicate(error):
                self._suppressed += 1
                self.logger.debug(f"Suppressed repeated error: {message}")
                return error

            self._history.append(error)
            self._total += 1
            self._by_category[category.value] += 1
            callbacks = list(self._callbacks)

        text = f"[{category.value.upper()}] {message}"
        if details:
            text += f" - {details}"
        self.logger.log(_LOG_LEVELS[severity], text)

        for callback in callbacks:
            try:
                callback(error)
            except Exception as e:
                self.logger.error(f"Notification callback failed: {e}")

        return error

    def report(self, exception: Exception, action: str,
               context: Optional[Dict[str, Any]] = None) -> ErrorInfo:
        """
        Report an exception raised by a user-initiated action.

        Every call is recorded and notified, repeats included.

        Args:
            exception: The exception raised
            action: Short description of what the operator tried to do
            context: Values identifying the target of the action
        """
        category, severity = classify(exception)
        return self.handle_error(
            category, severity, f"{action} failed: {exception}",
            details=type(exception).__name__, context=context, exception=exception,
            suppress_duplicates=False
        )

    def get_error_history(self, category: Optional[ErrorCategory] = None) -> List[ErrorInfo]:
        with self._lock:
            history = list(self._history)
        if category is None:
            return history
        return [e for e in history if e.category == category]

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'total_errors': self._total,
                'suppressed_errors': self._suppressed,
                'errors_by_category': dict(self._by_category)
            }

    def clear_history(self):
        """Forget recorded errors and the suppression state."""
        with self._lock:
            self._history.clear()
            self._last_seen.clear()

    def _is_duplicate(self, error: ErrorInfo) -> bool:
        window_start = error.timestamp - self.suppression_window
        self._last_seen = {k: t for k, t in self._last_seen.items() if t > window_start}

        if error.key in self._last_seen:
            return True
        self._last_seen[error.key] = error.timestamp
        return False


def classify(exception: Exception) -> Tuple[ErrorCategory, ErrorSeverity]:
    """Map an exception to (category, severity)."""
    for error_type, category, severity in _CLASSIFICATION:
        if isinstance(exception, error_type):
            return category, severity
    if isinstance(exception, ClientError):
        return ErrorCategory.INTERNAL, ErrorSeverity.MEDIUM
    return ErrorCategory.INTERNAL, ErrorSeverity.HIGH
