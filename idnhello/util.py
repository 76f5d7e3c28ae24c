"""
Utility functions for IDN-Hello scanning.

Provides:
- Local IPv4 interface enumeration
- IP address validation
- Broadcast socket creation helper
- Timeout context manager
- Bounded text builder for record lines
"""

from __future__ import annotations

import ipaddress
import logging
import time
from collections import namedtuple
from socket import AF_INET, SO_BROADCAST, SOCK_DGRAM, SOL_SOCKET, socket
from typing import Any, Iterator, List

import psutil

from .exceptions import InterfaceError, InvalidIPError, PermissionDeniedError, SocketError

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

# Largest UDP payload; one receive buffer of this size per receive call
MAX_DATAGRAM_SIZE = 0x10000


# =============================================================================
# Interface Enumeration
# =============================================================================


class NetworkInterface(namedtuple("NetworkInterface", ["name", "address"])):
    """Local interface name and one of its IPv4 addresses."""

    def __str__(self) -> str:
        return f"{self.name} (IP4: {self.address})"


def iter_ipv4_interfaces(include_loopback: bool = True) -> Iterator[NetworkInterface]:
    """Yield every (interface name, IPv4 address) pair of this host.

    An interface with several IPv4 addresses yields one pair per address.

    Args:
        include_loopback: Also yield loopback addresses (127.0.0.0/8)

    Raises:
        InterfaceError: If the interface list cannot be read
    """
    try:
        addrs = psutil.net_if_addrs()
    except OSError as e:
        raise InterfaceError(f"Failed to list network interfaces: {e}") from e

    for name, entries in addrs.items():
        for entry in entries:
            if entry.family != AF_INET:
                continue
            if not include_loopback and ipaddress.IPv4Address(entry.address).is_loopback:
                logger.debug(f"Skipping loopback interface {name}")
                continue
            yield NetworkInterface(name, entry.address)


# =============================================================================
# Address Utilities
# =============================================================================


def ip2s(ip_str: str) -> bytes:
    """Convert dotted decimal IP string to bytes.

    Raises:
        InvalidIPError: If IP address format is invalid
    """
    if not ip_str:
        raise InvalidIPError("IP address cannot be empty")

    try:
        return ipaddress.IPv4Address(ip_str).packed
    except ipaddress.AddressValueError as e:
        raise InvalidIPError(f"Invalid IP address: {ip_str!r}") from e


def decode_bytes(data: bytes) -> str:
    """Decode a nul-terminated byte field, ignoring everything after the nul."""
    return data.split(b"\x00", 1)[0].decode("utf-8", errors="replace")


# =============================================================================
# Socket Utilities
# =============================================================================


def broadcast_socket(address: str) -> socket:
    """Create a UDP socket bound to a local address with broadcast enabled.

    The socket is bound to an ephemeral port so that a broadcast leaves
    through the interface owning ``address``.

    Args:
        address: Local IPv4 address to bind to

    Returns:
        Bound UDP socket

    Raises:
        InvalidIPError: If address is not a valid IPv4 address
        PermissionDeniedError: If the OS refuses the bind
        SocketError: If socket creation, option setting or binding fails
    """
    ip2s(address)

    try:
        s = socket(AF_INET, SOCK_DGRAM)
    except OSError as e:
        raise SocketError("socket() failed", e.errno) from e

    try:
        s.setsockopt(SOL_SOCKET, SO_BROADCAST, 1)
    except OSError as e:
        s.close()
        raise SocketError("setsockopt(broadcast) failed", e.errno) from e

    try:
        s.bind((address, 0))
    except PermissionError as e:
        s.close()
        raise PermissionDeniedError(f"bind() to {address} not permitted", e.errno) from e
    except OSError as e:
        s.close()
        raise SocketError(f"bind() to {address} failed", e.errno) from e

    return s


# =============================================================================
# Timeout Context Manager
# =============================================================================


class MaxTimeout:
    """Context manager for time-limited operations.

    The deadline is fixed when the context is entered.

    Usage:
        with MaxTimeout(0.5) as t:
            while not t.timed_out:
                # do work, never waiting longer than t.remaining

    Attributes:
        seconds: Timeout duration
        remaining: Seconds remaining until timeout
    """

    def __init__(self, seconds: float):
        self.seconds = seconds
        self._die_after: float = 0

    def __enter__(self) -> "MaxTimeout":
        self._die_after = time.monotonic() + self.seconds
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        pass

    @property
    def timed_out(self) -> bool:
        """Check if timeout has elapsed."""
        return time.monotonic() >= self._die_after

    @property
    def remaining(self) -> float:
        """Get remaining time in seconds."""
        return max(0.0, self._die_after - time.monotonic())


# =============================================================================
# Bounded Text Builder
# =============================================================================


class BoundedText:
    """Append-only text with a fixed capacity.

    One of the ``capacity`` slots is reserved for a terminator, so at most
    ``capacity - 1`` characters are held. An append that does not fit keeps
    the prefix that does and ends the text with an ellipsis; every later
    append is ignored.

    Example:
        >>> text = BoundedText(8)
        >>> str(text.append("ABCDEFGHIJ"))
        'ABCD...'
        >>> text.truncated
        True
    """

    ELLIPSIS = "..."

    def __init__(self, capacity: int = 200):
        if capacity < 1:
            raise ValueError(f"Capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self._parts: List[str] = []
        self._length = 0
        self._truncated = False

    @property
    def truncated(self) -> bool:
        """True once an append overflowed the capacity."""
        return self._truncated

    def append(self, text: str) -> "BoundedText":
        """Append text, truncating with an ellipsis when out of room."""
        if self._truncated or not text:
            return self

        available = self.capacity - 1 - self._length
        margin = len(self.ELLIPSIS)

        if available > margin:
            room = available - margin
            if len(text) <= room:
                self._add(text)
                return self
            self._add(text[:room])
            available = margin

        self._add("." * available)
        self._truncated = True
        return self

    def _add(self, text: str) -> None:
        self._parts.append(text)
        self._length += len(text)

    def __len__(self) -> int:
        return self._length

    def __str__(self) -> str:
        return "".join(self._parts)
