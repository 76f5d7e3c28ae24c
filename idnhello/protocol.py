"""
IDN-Hello protocol packet definitions.

Defines packet structures for the scan exchange of the IDN-Hello
discovery protocol:
- Packet header shared by requests and responses
- Scan response body (unit identifier, host name, status)

Packet layout (all multi-byte fields big-endian):
  [command]   1 byte    SCAN_REQUEST / SCAN_RESPONSE
  [flags]     1 byte    reserved, 0
  [sequence]  2 bytes   correlation token, echoed by the responder
  --- scan response only ---
  [struct_size, protocol_version, status, reserved]   4 bytes
  [unit_id]   16 bytes  [0] = length N, then N bytes, zero padded
  [host_name] 20 bytes  nul padded text
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, List, Optional, Union

import construct as cs

from .util import BoundedText, decode_bytes

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

IDN_HELLO_UDP_PORT = 7255

# Commands
IDNCMD_VOID = 0x00
IDNCMD_PING_REQUEST = 0x08
IDNCMD_PING_RESPONSE = 0x09
IDNCMD_SCAN_REQUEST = 0x10
IDNCMD_SCAN_RESPONSE = 0x11
IDNCMD_SERVICEMAP_REQUEST = 0x12
IDNCMD_SERVICEMAP_RESPONSE = 0x13

COMMAND_NAMES: Dict[int, str] = {
    IDNCMD_VOID: "VOID",
    IDNCMD_PING_REQUEST: "PING_REQUEST",
    IDNCMD_PING_RESPONSE: "PING_RESPONSE",
    IDNCMD_SCAN_REQUEST: "SCAN_REQUEST",
    IDNCMD_SCAN_RESPONSE: "SCAN_RESPONSE",
    IDNCMD_SERVICEMAP_REQUEST: "SERVICEMAP_REQUEST",
    IDNCMD_SERVICEMAP_RESPONSE: "SERVICEMAP_RESPONSE",
}

# Scan response status flags
IDNFLG_SCAN_STATUS_MALFUNCTION = 0x80
IDNFLG_SCAN_STATUS_OFFLINE = 0x40
IDNFLG_SCAN_STATUS_EXCLUDED = 0x20
IDNFLG_SCAN_STATUS_OCCUPIED = 0x10
IDNFLG_SCAN_STATUS_REALTIME = 0x01

STATUS_FLAG_NAMES: Dict[int, str] = {
    IDNFLG_SCAN_STATUS_MALFUNCTION: "MALFUNCTION",
    IDNFLG_SCAN_STATUS_OFFLINE: "OFFLINE",
    IDNFLG_SCAN_STATUS_EXCLUDED: "EXCLUDED",
    IDNFLG_SCAN_STATUS_OCCUPIED: "OCCUPIED",
    IDNFLG_SCAN_STATUS_REALTIME: "REALTIME",
}

# Field capacities
UNIT_ID_SIZE = 16
HOST_NAME_SIZE = 20
MAX_UNIT_ID_LENGTH = UNIT_ID_SIZE - 1

DEFAULT_PROTOCOL_VERSION = 0x10  # 1.0

# Capacity of the human readable identity part of a record line
RECORD_TEXT_CAPACITY = 200

# Shown in place of an empty unit id without host name
UNKNOWN_IDENTITY = "<?>"

# =============================================================================
# Construct Struct Definitions
# =============================================================================

PacketHeaderStruct = cs.Struct(
    "command" / cs.Int8ub,
    "flags" / cs.Int8ub,
    "sequence" / cs.Int16ub,
)

ScanResponseStruct = cs.Struct(
    "struct_size" / cs.Int8ub,
    "protocol_version" / cs.Int8ub,
    "status" / cs.Int8ub,
    "reserved" / cs.Int8ub,
    "unit_id" / cs.Bytes(UNIT_ID_SIZE),
    "host_name" / cs.Bytes(HOST_NAME_SIZE),
)

PACKET_HEADER_SIZE = PacketHeaderStruct.sizeof()
SCAN_RESPONSE_SIZE = ScanResponseStruct.sizeof()
SCAN_RESPONSE_PACKET_SIZE = PACKET_HEADER_SIZE + SCAN_RESPONSE_SIZE


def command_name(code: int) -> str:
    """Get name of a command code, hex value if unknown."""
    return COMMAND_NAMES.get(code, f"0x{code:02X}")


# =============================================================================
# Decoded Records
# =============================================================================


class DecodeError(IntEnum):
    """Reason a received datagram is not a scan response for this session."""

    WRONG_LENGTH = 1
    WRONG_COMMAND = 2
    WRONG_SEQUENCE = 3
    WRONG_BODY_SIZE = 4


@dataclass(frozen=True)
class ScanRecord:
    """Device identity decoded from a scan response."""

    unit_id: bytes
    """Unit identifier bytes (without the length prefix)."""

    host_name: Optional[str] = None
    """Host name, None when the responder sent an empty one."""

    protocol_version: int = DEFAULT_PROTOCOL_VERSION
    """Protocol version: upper nibble major, lower nibble minor."""

    status: int = 0
    """Unit and link status flags."""

    @property
    def protocol_version_major(self) -> int:
        return (self.protocol_version >> 4) & 0x0F

    @property
    def protocol_version_minor(self) -> int:
        return self.protocol_version & 0x0F

    @property
    def is_malfunction(self) -> bool:
        return bool(self.status & IDNFLG_SCAN_STATUS_MALFUNCTION)

    @property
    def is_offline(self) -> bool:
        return bool(self.status & IDNFLG_SCAN_STATUS_OFFLINE)

    @property
    def is_excluded(self) -> bool:
        return bool(self.status & IDNFLG_SCAN_STATUS_EXCLUDED)

    @property
    def is_occupied(self) -> bool:
        return bool(self.status & IDNFLG_SCAN_STATUS_OCCUPIED)

    @property
    def is_realtime(self) -> bool:
        return bool(self.status & IDNFLG_SCAN_STATUS_REALTIME)

    @property
    def status_flags(self) -> List[str]:
        """Names of the status flags that are set."""
        return [name for flag, name in STATUS_FLAG_NAMES.items() if self.status & flag]


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of decoding one datagram: a record or the reason it was rejected."""

    record: Optional[ScanRecord] = None
    error: Optional[DecodeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# =============================================================================
# Encoding / Decoding
# =============================================================================


def encode_request(sequence: int) -> bytes:
    """Build a scan request packet.

    Args:
        sequence: Correlation token (masked to 16 bits)

    Returns:
        4-byte request packet
    """
    return PacketHeaderStruct.build(
        {"command": IDNCMD_SCAN_REQUEST, "flags": 0, "sequence": sequence & 0xFFFF}
    )


def encode_response(
    sequence: int,
    unit_id: bytes,
    host_name: Optional[str] = None,
    protocol_version: int = DEFAULT_PROTOCOL_VERSION,
    status: int = 0,
) -> bytes:
    """Build a scan response packet, as a responding device would send it.

    Args:
        sequence: Sequence of the request being answered
        unit_id: Unit identifier bytes (at most 15)
        host_name: Optional host name (at most 20 bytes UTF-8)
        protocol_version: Protocol version byte
        status: Status flags

    Returns:
        44-byte scan response packet

    Raises:
        ValueError: If unit_id or host_name do not fit their fields
    """
    if len(unit_id) > MAX_UNIT_ID_LENGTH:
        raise ValueError(
            f"Unit ID too long: {len(unit_id)} bytes (max {MAX_UNIT_ID_LENGTH})"
        )
    name_bytes = (host_name or "").encode("utf-8")
    if len(name_bytes) > HOST_NAME_SIZE:
        raise ValueError(
            f"Host name too long: {len(name_bytes)} bytes (max {HOST_NAME_SIZE})"
        )

    header = PacketHeaderStruct.build(
        {"command": IDNCMD_SCAN_RESPONSE, "flags": 0, "sequence": sequence & 0xFFFF}
    )
    body = ScanResponseStruct.build(
        {
            "struct_size": SCAN_RESPONSE_SIZE,
            "protocol_version": protocol_version,
            "status": status,
            "reserved": 0,
            "unit_id": (bytes([len(unit_id)]) + unit_id).ljust(UNIT_ID_SIZE, b"\x00"),
            "host_name": name_bytes.ljust(HOST_NAME_SIZE, b"\x00"),
        }
    )
    return header + body


def decode_response(
    data: Union[bytes, bytearray, memoryview], expected_sequence: int
) -> DecodeResult:
    """Validate and decode a scan response.

    Checks length, command, sequence and body size in that order; the
    first failing check is reported. Never raises for malformed input.

    Args:
        data: Received datagram
        expected_sequence: Sequence sent in this session's request

    Returns:
        DecodeResult holding either the record or the rejection reason
    """
    data = bytes(data)

    if len(data) != SCAN_RESPONSE_PACKET_SIZE:
        return DecodeResult(error=DecodeError.WRONG_LENGTH)

    header = PacketHeaderStruct.parse(data[:PACKET_HEADER_SIZE])
    if header.command != IDNCMD_SCAN_RESPONSE:
        return DecodeResult(error=DecodeError.WRONG_COMMAND)
    if header.sequence != expected_sequence & 0xFFFF:
        return DecodeResult(error=DecodeError.WRONG_SEQUENCE)

    body = ScanResponseStruct.parse(data[PACKET_HEADER_SIZE:])
    if body.struct_size != SCAN_RESPONSE_SIZE:
        return DecodeResult(error=DecodeError.WRONG_BODY_SIZE)

    # Length byte may claim more than the field holds
    unit_id_len = min(body.unit_id[0], MAX_UNIT_ID_LENGTH)
    host_name = decode_bytes(body.host_name)

    return DecodeResult(
        record=ScanRecord(
            unit_id=body.unit_id[1 : 1 + unit_id_len],
            host_name=host_name or None,
            protocol_version=body.protocol_version,
            status=body.status,
        )
    )


def format_unit_id(unit_id: bytes, capacity: int = RECORD_TEXT_CAPACITY) -> BoundedText:
    """Render a unit identifier as hex pairs, split after the first byte.

    Example: b"\\xaa\\xbb\\xcc" -> "AA-BBCC"
    """
    text = BoundedText(capacity)
    for i, octet in enumerate(unit_id):
        text.append(f"{octet:02X}")
        if i == 0:
            text.append("-")
    return text


def format_record(
    record: ScanRecord, source_address: str, capacity: int = RECORD_TEXT_CAPACITY
) -> str:
    """Format the one-line description of a discovered device.

    Layout: ``<unit id>[(<host name>)] at <source address>``; a record with
    neither unit id nor host name shows as ``<?> at <source address>``.

    Args:
        record: Decoded scan record
        source_address: Address the response came from
        capacity: Capacity of the identity part, see BoundedText

    Returns:
        Record line, e.g. "AA-BBCC(dev1) at 192.168.1.20"
    """
    text = format_unit_id(record.unit_id, capacity)
    if record.host_name:
        text.append(f"({record.host_name})")
    if not len(text):
        text.append(UNKNOWN_IDENTITY)
    if text.truncated:
        logger.debug(f"Record text from {source_address} truncated to {len(text)} chars")
    return f"{text} at {source_address}"
