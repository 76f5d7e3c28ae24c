"""Tests for idnhello.exceptions module."""

import pytest
from idnhello.exceptions import (
    IDNHelloError,
    InterfaceError,
    InvalidIPError,
    PermissionDeniedError,
    ScanError,
    SocketError,
    ValidationError,
)


class TestExceptionHierarchy:
    """Test exception inheritance hierarchy."""

    def test_scan_error_inherits_base(self):
        assert issubclass(ScanError, IDNHelloError)

    def test_socket_error_inherits_base(self):
        assert issubclass(SocketError, IDNHelloError)

    def test_permission_denied_inherits_socket_error(self):
        assert issubclass(PermissionDeniedError, SocketError)

    def test_interface_error_inherits_base(self):
        assert issubclass(InterfaceError, IDNHelloError)

    def test_invalid_ip_inherits_validation_error(self):
        assert issubclass(InvalidIPError, ValidationError)
        assert issubclass(ValidationError, IDNHelloError)

    def test_catch_all_with_base_class(self):
        errors = [
            ScanError("scan"),
            SocketError("socket"),
            InterfaceError("interface"),
            InvalidIPError("ip"),
        ]
        for error in errors:
            with pytest.raises(IDNHelloError):
                raise error


class TestSocketError:
    """Test SocketError error code handling."""

    def test_errno_default(self):
        error = SocketError("socket() failed")

        assert error.errno is None
        assert str(error) == "socket() failed"

    def test_errno_in_message(self):
        error = SocketError("bind() failed", 99)

        assert error.errno == 99
        assert str(error) == "bind() failed (error: 99)"

    def test_permission_denied_keeps_errno(self):
        error = PermissionDeniedError("bind() not permitted", 13)

        assert error.errno == 13
        assert "13" in str(error)
