#!/usr/bin/env python3
"""
Scan one local address and show the decoded scan response fields.

Run with: python3 01_scan_interface.py 192.168.1.10
"""

import sys

from idnhello import ScanSession, SocketError

if len(sys.argv) != 2:
    print(f"Usage: {sys.argv[0]} <local IPv4 address>")
    sys.exit(2)

address = sys.argv[1]

try:
    with ScanSession(None, address, timeout=1.0) as session:
        sequence = session.send_request()
        print(f"Sent scan request from {address} (sequence=0x{sequence:04X})\n")

        for device in session.collect():
            record = device.record
            print(device)
            print(f"  Unit ID:  {record.unit_id.hex()}")
            print(f"  Host:     {record.host_name or '-'}")
            print(f"  Version:  {record.protocol_version_major}.{record.protocol_version_minor}")
            print(f"  Status:   {', '.join(record.status_flags) or 'none'}")

        print(f"\n{session.ignored} unrelated datagram(s) ignored")

except SocketError as e:
    print(f"ERROR: {e}")
    sys.exit(1)
