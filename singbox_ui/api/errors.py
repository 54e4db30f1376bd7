"""
Error taxonomy for talking to the manager service.
"""

from typing import Optional


class ClientError(Exception):
    """Base class for all client-side errors."""


class TransportError(ClientError):
    """Network or HTTP-level failure reaching the manager."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(ClientError):
    """A payload or stream message could not be decoded."""


class RemoteRejection(ClientError):
    """The manager answered with a non-2xx status and an error payload."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self):
        return self.message


class ValidationError(ClientError, ValueError):
    """Operator-entered configuration failed to parse before submission."""
