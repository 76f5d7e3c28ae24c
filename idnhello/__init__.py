"""
IDN-Hello Discovery Library

A Python library for locating IDN-Hello servers on the local network:
- Scan request/response packet encoding and validation
- Broadcast scan sessions bound to a single local interface
- Sequential or parallel scans over all local IPv4 interfaces

Each responding server is reported as one line:
``<unit id>[(<host name>)] at <address>``.
"""

from .protocol import (
    PacketHeaderStruct,
    ScanResponseStruct,
    ScanRecord,
    DecodeError,
    DecodeResult,
    encode_request,
    encode_response,
    decode_response,
    format_record,
    format_unit_id,
    command_name,
    # Constants
    IDN_HELLO_UDP_PORT,
    IDNCMD_SCAN_REQUEST,
    IDNCMD_SCAN_RESPONSE,
    PACKET_HEADER_SIZE,
    SCAN_RESPONSE_SIZE,
    SCAN_RESPONSE_PACKET_SIZE,
)

from .scan import (
    ScanSession,
    ScanResult,
    DiscoveredDevice,
    scan_interface,
    scan_all,
    scan,
    DEFAULT_SCAN_TIMEOUT,
    BROADCAST_ADDRESS,
)

from .util import (
    NetworkInterface,
    BoundedText,
    MaxTimeout,
    iter_ipv4_interfaces,
    broadcast_socket,
    ip2s,
)

from .exceptions import (
    IDNHelloError,
    ScanError,
    SocketError,
    PermissionDeniedError,
    InterfaceError,
    ValidationError,
    InvalidIPError,
)

__version__ = "0.1.0"
__all__ = [
    # Protocol structures
    "PacketHeaderStruct",
    "ScanResponseStruct",
    "ScanRecord",
    "DecodeError",
    "DecodeResult",
    "encode_request",
    "encode_response",
    "decode_response",
    "format_record",
    "format_unit_id",
    "command_name",
    # Protocol constants
    "IDN_HELLO_UDP_PORT",
    "IDNCMD_SCAN_REQUEST",
    "IDNCMD_SCAN_RESPONSE",
    "PACKET_HEADER_SIZE",
    "SCAN_RESPONSE_SIZE",
    "SCAN_RESPONSE_PACKET_SIZE",
    # Scanning
    "ScanSession",
    "ScanResult",
    "DiscoveredDevice",
    "scan_interface",
    "scan_all",
    "scan",
    "DEFAULT_SCAN_TIMEOUT",
    "BROADCAST_ADDRESS",
    # Utilities
    "NetworkInterface",
    "BoundedText",
    "MaxTimeout",
    "iter_ipv4_interfaces",
    "broadcast_socket",
    "ip2s",
    # Exceptions
    "IDNHelloError",
    "ScanError",
    "SocketError",
    "PermissionDeniedError",
    "InterfaceError",
    "ValidationError",
    "InvalidIPError",
]
