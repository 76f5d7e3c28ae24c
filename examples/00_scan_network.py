#!/usr/bin/env python3
"""
Scan all local interfaces for IDN-Hello servers - simplest example.

Uses plain UDP broadcast, no root required.
Run with: python3 00_scan_network.py
"""

import os
import sys

from idnhello import InterfaceError, scan

TIMEOUT = float(os.environ.get("IDNHELLO_TIMEOUT", "0.5"))

try:
    print("Scanning for IDN-Hello servers...\n")

    count = 0
    for device in scan(timeout=TIMEOUT):
        print(f"  {device.interface or '?':10} {device}")
        count += 1

    if count == 0:
        print("No servers found")
    else:
        print(f"\nFound {count} server(s)")

except InterfaceError as e:
    print(f"ERROR: {e}")
    sys.exit(1)
