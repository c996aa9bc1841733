"""Tests for the exception hierarchy."""

import pytest

from cctransmission.utils.exceptions import (
    BencodeError,
    CCTError,
    ConfigurationError,
    DaemonConnectionError,
    DaemonTimeoutError,
    FramingError,
    HandshakeError,
    InvalidArgumentError,
    MessageError,
    NetworkError,
    ProtocolError,
    ProtocolVersionError,
    SessionClosedError,
    SessionError,
    UnknownPropertyError,
    ValidationError,
)

pytestmark = pytest.mark.unit


def test_message_and_details():
    error = CCTError("Socket closed", {"expected": 8, "received": 3})
    assert error.message == "Socket closed"
    assert error.details == {"expected": 8, "received": 3}
    assert str(error) == "Socket closed (Details: {'expected': 8, 'received': 3})"


def test_str_without_details():
    error = CCTError("Socket closed")
    assert error.details == {}
    assert str(error) == "Socket closed"


@pytest.mark.parametrize(
    ("error_class", "parents"),
    [
        (DaemonConnectionError, (NetworkError,)),
        (DaemonTimeoutError, (DaemonConnectionError, NetworkError)),
        (FramingError, (ProtocolError,)),
        (ProtocolVersionError, (HandshakeError, ProtocolError)),
        (MessageError, (ProtocolError,)),
        (UnknownPropertyError, (ValidationError,)),
        (InvalidArgumentError, (ValidationError,)),
        (ConfigurationError, (ValidationError,)),
        (BencodeError, (ValidationError,)),
        (SessionClosedError, (SessionError,)),
    ],
)
def test_hierarchy(error_class, parents):
    error = error_class("x")
    assert isinstance(error, CCTError)
    for parent in parents:
        assert isinstance(error, parent)


def test_connection_error_does_not_shadow_builtin():
    assert not issubclass(DaemonConnectionError, ConnectionError)
