"""
IDN-Hello command-line interface.

Scans all local IPv4 interfaces for IDN-Hello servers and prints one
line per discovered device.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from typing import Iterator, Optional

from .exceptions import IDNHelloError, InterfaceError
from .scan import DEFAULT_SCAN_TIMEOUT, scan_all
from .util import NetworkInterface, iter_ipv4_interfaces

logger = logging.getLogger(__name__)


def setup_logging(quiet: bool = False, debug: bool = False) -> None:
    """Configure logging for the command line.

    INFO by default so every scanned interface is announced; ``quiet``
    keeps warnings and errors only, ``debug`` wins over ``quiet``.
    """
    if debug:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def select_interfaces(args: argparse.Namespace) -> Iterator[NetworkInterface]:
    """Local interfaces to scan, filtered by the command line options."""
    for iface in iter_ipv4_interfaces(include_loopback=not args.no_loopback):
        if args.interface and iface.name not in args.interface:
            continue
        yield iface


def cmd_scan(args: argparse.Namespace) -> int:
    """Execute scan command."""
    print("Scanning for IDN-Hello servers...")
    print("-" * 60)

    results = scan_all(
        select_interfaces(args),
        timeout=args.timeout,
        parallel=args.parallel,
    )

    if not results:
        print("No usable network interfaces")
        return 0

    count = 0
    for result in results:
        for device in result.devices:
            count += 1
            line = str(device)
            if args.verbose and device.record.status_flags:
                line += f" [{', '.join(device.record.status_flags)}]"
            print(line)

    print("-" * 60)
    print(f"Found {count} device(s) on {len(results)} interface(s)")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="idnhello",
        description="Scan the local network for IDN-Hello servers",
    )

    parser.add_argument(
        "-i", "--interface",
        action="append",
        metavar="IFACE",
        help="Only scan this interface (may be given more than once)",
    )
    parser.add_argument(
        "--no-loopback",
        action="store_true",
        help="Skip loopback interfaces",
    )
    parser.add_argument(
        "-t", "--timeout",
        type=float,
        default=DEFAULT_SCAN_TIMEOUT,
        help=f"Response collection window in seconds (default: {DEFAULT_SCAN_TIMEOUT})",
    )
    parser.add_argument(
        "--parallel",
        action="store_true",
        help="Scan all interfaces at the same time",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show device status flags",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only log warnings and errors",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output",
    )
    parser.set_defaults(func=cmd_scan)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.quiet, args.debug)

    try:
        return args.func(args)
    except InterfaceError as e:
        print(f"Error: cannot list network interfaces: {e}", file=sys.stderr)
        return 1
    except IDNHelloError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130
    except Exception as e:
        logger.exception("Unexpected error")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
