"""
Error handling for the sing-box UI client.

This package turns failures of operator-initiated actions into
recorded, logged, and surfaced notifications.
"""

from .error_manager import ErrorManager, ErrorInfo, ErrorSeverity, ErrorCategory, classify

__all__ = [
    'ErrorManager',
    'ErrorInfo',
    'ErrorSeverity',
    'ErrorCategory',
    'classify'
]
