"""
IDN-Hello scan sessions.

Provides device discovery on local IPv4 interfaces:
- ScanSession: one request/collect cycle bound to one local address
- scan_interface(): run one session, errors are logged, never raised
- scan_all(): one session per local interface, sequential or parallel
- scan(): iterate over all discovered devices
"""

from __future__ import annotations

import logging
import random
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from socket import socket, timeout as SocketTimeout
from typing import Any, Iterable, Iterator, List, Optional, Tuple

from .exceptions import ScanError, SocketError, ValidationError
from .protocol import (
    IDN_HELLO_UDP_PORT,
    DecodeError,
    PACKET_HEADER_SIZE,
    ScanRecord,
    command_name,
    decode_response,
    encode_request,
    format_record,
)
from .util import (
    MAX_DATAGRAM_SIZE,
    MaxTimeout,
    NetworkInterface,
    broadcast_socket,
    iter_ipv4_interfaces,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

DEFAULT_SCAN_TIMEOUT = 0.5
BROADCAST_ADDRESS = "255.255.255.255"


def _generate_sequence(rng: random.Random) -> int:
    """Generate random sequence number for a scan request."""
    return rng.randint(0, 0xFFFF)


def _describe_rejection(error: DecodeError, data: bytes) -> str:
    """Human-readable reason a datagram was discarded."""
    if error == DecodeError.WRONG_LENGTH:
        return f"invalid packet size {len(data)}"
    if error == DecodeError.WRONG_COMMAND:
        return f"invalid command {command_name(data[0])}"
    if error == DecodeError.WRONG_SEQUENCE:
        return "invalid sequence"
    return f"invalid scan response header size {data[PACKET_HEADER_SIZE]}"


# =============================================================================
# Results
# =============================================================================


@dataclass
class DiscoveredDevice:
    """A device that answered a scan request."""

    record: ScanRecord
    """Decoded scan response."""

    address: str
    """Source address of the response."""

    interface: Optional[str] = None
    """Local interface the response was received on."""

    @property
    def unit_id(self) -> bytes:
        return self.record.unit_id

    @property
    def host_name(self) -> Optional[str]:
        return self.record.host_name

    def __str__(self) -> str:
        return format_record(self.record, self.address)


@dataclass
class ScanResult:
    """Outcome of one scan session."""

    interface: Optional[str]
    address: str
    sequence: Optional[int] = None
    devices: List[DiscoveredDevice] = field(default_factory=list)
    error: Optional[str] = None
    ignored: int = 0
    """Number of datagrams discarded as malformed or foreign."""

    @property
    def ok(self) -> bool:
        """True if the session ran to the end of its collection window."""
        return self.error is None


# =============================================================================
# Scan Session
# =============================================================================


class ScanSession:
    """One IDN-Hello discovery pass on one local interface.

    The session binds a UDP socket to the interface address, broadcasts
    one scan request with a fresh sequence number and collects every
    matching response until a fixed deadline. The deadline is set once
    when collection starts and is never extended.

    Example:
        >>> with ScanSession("eth0", "192.168.1.10") as session:
        ...     session.send_request()
        ...     for device in session.collect():
        ...         print(device)

    Use run() for the variant that logs errors instead of raising them.
    """

    def __init__(
        self,
        interface: Optional[str],
        address: str,
        timeout: float = DEFAULT_SCAN_TIMEOUT,
        rng: Optional[random.Random] = None,
        port: int = IDN_HELLO_UDP_PORT,
        broadcast_address: str = BROADCAST_ADDRESS,
    ) -> None:
        """Initialize scan session.

        Args:
            interface: Local interface name (used for logging only)
            address: Local IPv4 address to bind to
            timeout: Collection window in seconds
            rng: Random source for the sequence number. Defaults to a
                session-private generator seeded by the OS.
            port: Destination UDP port
            broadcast_address: Destination address of the request
        """
        self.interface = interface
        self.address = address
        self.timeout = timeout
        self.port = port
        self.broadcast_address = broadcast_address
        self.sequence: Optional[int] = None
        self.ignored = 0

        self._rng = rng if rng is not None else random.Random()
        self._sock: Optional[socket] = None

    @property
    def is_open(self) -> bool:
        return self._sock is not None

    def open(self) -> None:
        """Create the broadcast socket bound to the session address.

        Raises:
            InvalidIPError: If the address is not a valid IPv4 address
            SocketError: If the socket cannot be set up
        """
        if self._sock is not None:
            return
        self._sock = broadcast_socket(self.address)

    def send_request(self) -> int:
        """Broadcast a scan request with a new sequence number.

        Returns:
            Sequence number of the request

        Raises:
            ScanError: If the session is not open
            SocketError: If sending fails
        """
        if self._sock is None:
            raise ScanError("Scan session is not open")

        self.sequence = _generate_sequence(self._rng)
        try:
            self._sock.sendto(
                encode_request(self.sequence), (self.broadcast_address, self.port)
            )
        except OSError as e:
            raise SocketError("sendto() failed", e.errno) from e

        logger.debug(
            f"Sent scan request to {self.broadcast_address}:{self.port} "
            f"(sequence=0x{self.sequence:04X})"
        )
        return self.sequence

    def collect(self) -> Iterator[DiscoveredDevice]:
        """Yield devices answering the request until the window closes.

        Datagrams that do not decode as a response to this session's
        request are counted in ``ignored`` and skipped. A receive error
        ends collection early.

        Raises:
            ScanError: If no request has been sent in this session
        """
        if self._sock is None or self.sequence is None:
            raise ScanError("No scan request sent in this session")

        with MaxTimeout(self.timeout) as timer:
            while True:
                remaining = timer.remaining
                if remaining <= 0:
                    break

                try:
                    self._sock.settimeout(remaining)
                    data, addr = self._sock.recvfrom(MAX_DATAGRAM_SIZE)
                except SocketTimeout:
                    break
                except OSError as e:
                    logger.error(f"recvfrom() failed (error: {e.errno})")
                    break

                source = addr[0]
                result = decode_response(data, self.sequence)
                if not result.ok:
                    self.ignored += 1
                    logger.debug(f"{source}: {_describe_rejection(result.error, data)}")
                    continue

                device = DiscoveredDevice(result.record, source, self.interface)
                logger.debug(f"Response: {device}")
                yield device

    def close(self) -> None:
        """Release the socket. Safe to call more than once."""
        sock, self._sock = self._sock, None
        if sock is None:
            return
        try:
            sock.close()
        except OSError as e:
            logger.error(f"close() failed (error: {e.errno})")

    def run(self) -> ScanResult:
        """Run the whole session: bind, send, collect, close.

        Setup and send failures are logged and reported in
        ScanResult.error; they are never raised.
        """
        result = ScanResult(self.interface, self.address)
        logger.info(f"Scanning interface {self.interface or '<?>'} (IP4: {self.address})")

        try:
            with self:
                result.sequence = self.send_request()
                result.devices.extend(self.collect())
        except (SocketError, ValidationError) as e:
            logger.error(f"{self.interface or self.address}: {e}")
            result.error = str(e)

        result.ignored = self.ignored
        logger.debug(
            f"Scan on {self.interface or self.address} finished: "
            f"{len(result.devices)} device(s), {result.ignored} ignored"
        )
        return result

    def __enter__(self) -> ScanSession:
        self.open()
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"ScanSession(interface={self.interface!r}, address={self.address}, "
            f"timeout={self.timeout})"
        )


# =============================================================================
# Driving Loop
# =============================================================================


def scan_interface(
    interface: Optional[str],
    address: str,
    timeout: float = DEFAULT_SCAN_TIMEOUT,
    port: int = IDN_HELLO_UDP_PORT,
    broadcast_address: str = BROADCAST_ADDRESS,
) -> ScanResult:
    """Run one scan session on one local address."""
    session = ScanSession(
        interface,
        address,
        timeout=timeout,
        port=port,
        broadcast_address=broadcast_address,
    )
    return session.run()


def scan_all(
    interfaces: Optional[Iterable[Tuple[Optional[str], str]]] = None,
    timeout: float = DEFAULT_SCAN_TIMEOUT,
    parallel: bool = False,
    max_workers: Optional[int] = None,
    port: int = IDN_HELLO_UDP_PORT,
    broadcast_address: str = BROADCAST_ADDRESS,
) -> List[ScanResult]:
    """Scan every local interface, one session per (name, address) pair.

    Args:
        interfaces: (name, address) pairs to scan from. Defaults to all
            local IPv4 interfaces.
        timeout: Collection window per session in seconds
        parallel: Run the sessions concurrently in a thread pool
        max_workers: Thread pool size (default: one thread per interface)
        port: Destination UDP port
        broadcast_address: Destination address of the requests

    Returns:
        One ScanResult per interface, in interface order

    Raises:
        InterfaceError: If the local interfaces cannot be listed
    """
    if interfaces is None:
        interfaces = iter_ipv4_interfaces()

    def run_one(iface: Tuple[Optional[str], str]) -> ScanResult:
        name, address = iface
        return scan_interface(
            name, address, timeout=timeout, port=port, broadcast_address=broadcast_address
        )

    if not parallel:
        return [run_one(iface) for iface in interfaces]

    targets = [NetworkInterface(*iface) for iface in interfaces]
    if not targets:
        return []

    with ThreadPoolExecutor(
        max_workers=max_workers or len(targets), thread_name_prefix="IDNHelloScan"
    ) as pool:
        return list(pool.map(run_one, targets))


def scan(
    interfaces: Optional[Iterable[Tuple[Optional[str], str]]] = None,
    timeout: float = DEFAULT_SCAN_TIMEOUT,
    parallel: bool = False,
) -> Iterator[DiscoveredDevice]:
    """Discover IDN-Hello devices on all local interfaces.

    Example:
        >>> for device in scan():
        ...     print(device)
    """
    for result in scan_all(interfaces, timeout=timeout, parallel=parallel):
        yield from result.devices
