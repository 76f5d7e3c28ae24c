"""
IDN-Hello exception hierarchy.

Provides specific exception types for different error conditions.
"""

from __future__ import annotations

from typing import Optional


class IDNHelloError(Exception):
    """Base exception for all IDN-Hello errors."""

    pass


class ScanError(IDNHelloError):
    """Scan session errors."""

    pass


class SocketError(IDNHelloError):
    """Socket operation error.

    Carries the platform error number of the failed call, if any.
    """

    def __init__(self, message: str, errno: Optional[int] = None):
        super().__init__(message)
        self.errno = errno

    def __str__(self) -> str:
        if self.errno is None:
            return self.args[0]
        return f"{self.args[0]} (error: {self.errno})"


class PermissionDeniedError(SocketError):
    """Insufficient permissions for the socket operation."""

    pass


class InterfaceError(IDNHelloError):
    """Network interface enumeration failed."""

    pass


class ValidationError(IDNHelloError):
    """Input validation error."""

    pass


class InvalidIPError(ValidationError):
    """Invalid IP address format."""

    pass
