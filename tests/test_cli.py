"""Tests for idnhello.cli module."""

import logging
from unittest.mock import patch

from idnhello.cli import create_parser, main, select_interfaces, setup_logging
from idnhello.exceptions import InterfaceError
from idnhello.protocol import ScanRecord
from idnhello.scan import DEFAULT_SCAN_TIMEOUT, DiscoveredDevice, ScanResult
from idnhello.util import NetworkInterface


class TestParser:
    """Test command line parsing."""

    def test_defaults(self):
        args = create_parser().parse_args([])

        assert args.timeout == DEFAULT_SCAN_TIMEOUT
        assert args.interface is None
        assert not args.no_loopback
        assert not args.parallel
        assert not args.verbose
        assert not args.quiet
        assert not args.debug

    def test_options(self):
        args = create_parser().parse_args(
            ["-i", "eth0", "-i", "eth1", "-t", "1.5", "--parallel", "--no-loopback"]
        )

        assert args.interface == ["eth0", "eth1"]
        assert args.timeout == 1.5
        assert args.parallel
        assert args.no_loopback


class TestSetupLogging:
    """Test log level selection."""

    def _level(self, *args):
        with patch("idnhello.cli.logging.basicConfig") as mock_config:
            setup_logging(*args)
        return mock_config.call_args.kwargs["level"]

    def test_default_announces_interfaces(self):
        assert self._level() == logging.INFO

    def test_quiet(self):
        assert self._level(True, False) == logging.WARNING

    def test_debug_wins(self):
        assert self._level(True, True) == logging.DEBUG

    def test_main_uses_info_by_default(self):
        with patch("idnhello.cli.scan_all", return_value=[]), \
                patch("idnhello.cli.setup_logging") as mock_setup:
            main([])

        mock_setup.assert_called_once_with(False, False)

    def test_main_quiet(self):
        with patch("idnhello.cli.scan_all", return_value=[]), \
                patch("idnhello.cli.setup_logging") as mock_setup:
            main(["-q"])

        mock_setup.assert_called_once_with(True, False)


class TestSelectInterfaces:
    """Test interface filtering."""

    INTERFACES = [
        NetworkInterface("lo", "127.0.0.1"),
        NetworkInterface("eth0", "192.168.1.10"),
        NetworkInterface("eth1", "10.0.0.10"),
    ]

    def test_all(self):
        args = create_parser().parse_args([])
        with patch("idnhello.cli.iter_ipv4_interfaces", return_value=self.INTERFACES) as mock_iter:
            result = list(select_interfaces(args))

        assert result == self.INTERFACES
        mock_iter.assert_called_once_with(include_loopback=True)

    def test_filter_by_name(self):
        args = create_parser().parse_args(["-i", "eth1"])
        with patch("idnhello.cli.iter_ipv4_interfaces", return_value=self.INTERFACES):
            result = list(select_interfaces(args))

        assert result == [NetworkInterface("eth1", "10.0.0.10")]

    def test_no_loopback(self):
        args = create_parser().parse_args(["--no-loopback"])
        with patch("idnhello.cli.iter_ipv4_interfaces", return_value=[]) as mock_iter:
            list(select_interfaces(args))

        mock_iter.assert_called_once_with(include_loopback=False)


class TestMain:
    """Test CLI entry point."""

    def test_prints_devices(self, capsys):
        results = [
            ScanResult(
                "eth0",
                "192.168.1.10",
                devices=[
                    DiscoveredDevice(ScanRecord(b"\xaa\xbb\xcc", "dev1"), "192.168.1.20"),
                    DiscoveredDevice(ScanRecord(b"\x01\x02"), "192.168.1.21"),
                ],
            ),
            ScanResult("eth1", "10.0.0.10", error="bind() failed (error: 99)"),
        ]
        with patch("idnhello.cli.scan_all", return_value=results):
            rc = main([])

        out = capsys.readouterr().out
        assert rc == 0
        assert "Scanning for IDN-Hello servers..." in out
        assert "AA-BBCC(dev1) at 192.168.1.20" in out
        assert "01-02 at 192.168.1.21" in out
        assert "Found 2 device(s) on 2 interface(s)" in out

    def test_verbose_shows_status(self, capsys):
        results = [
            ScanResult(
                "eth0",
                "192.168.1.10",
                devices=[DiscoveredDevice(ScanRecord(b"\x01\x02", status=0x10), "192.168.1.20")],
            )
        ]
        with patch("idnhello.cli.scan_all", return_value=results):
            main(["-v"])

        assert "01-02 at 192.168.1.20 [OCCUPIED]" in capsys.readouterr().out

    def test_nothing_to_scan(self, capsys):
        with patch("idnhello.cli.scan_all", return_value=[]):
            rc = main([])

        assert rc == 0
        assert "No usable network interfaces" in capsys.readouterr().out

    def test_passes_options(self):
        with patch("idnhello.cli.scan_all", return_value=[]) as mock_scan:
            main(["-t", "2", "--parallel"])

        kwargs = mock_scan.call_args.kwargs
        assert kwargs["timeout"] == 2.0
        assert kwargs["parallel"] is True

    def test_interface_error(self, capsys):
        with patch("idnhello.cli.scan_all", side_effect=InterfaceError("no access")):
            rc = main([])

        assert rc == 1
        assert "no access" in capsys.readouterr().err

    def test_keyboard_interrupt(self):
        with patch("idnhello.cli.scan_all", side_effect=KeyboardInterrupt):
            assert main([]) == 130
