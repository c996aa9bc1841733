"""Exception hierarchy for cctransmission.

Provides the error taxonomy shared by the transport, the protocol session
and the command dispatch table. Daemon-reported rejections are not errors;
they surface as ``False``/``None`` return values instead.
"""

from __future__ import annotations

from typing import Any


class CCTError(Exception):
    """Base exception for all cctransmission errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize cctransmission error."""
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class NetworkError(CCTError):
    """Network-related errors."""


class DaemonConnectionError(NetworkError):
    """Control socket unreachable, closed, or short read/write."""


class DaemonTimeoutError(DaemonConnectionError):
    """Configured read timeout expired while waiting for the daemon."""


class ProtocolError(CCTError):
    """IPC protocol errors."""


class FramingError(ProtocolError):
    """Invalid length prefix on a wire frame."""


class HandshakeError(ProtocolError):
    """Handshake protocol errors."""


class ProtocolVersionError(HandshakeError):
    """Daemon does not support the protocol version this client speaks."""


class MessageError(ProtocolError):
    """Message parsing/serialization errors."""


class ValidationError(CCTError):
    """Data validation errors."""


class InvalidArgumentError(ValidationError):
    """Caller passed arguments that violate an operation's contract."""


class UnknownPropertyError(ValidationError):
    """Property name is not one of the daemon's simple preferences."""


class ConfigurationError(ValidationError):
    """Configuration validation errors."""


class BencodeError(ValidationError):
    """Bencode encoding/decoding errors."""


class SessionError(CCTError):
    """Session lifecycle errors."""


class SessionClosedError(SessionError):
    """Operation attempted on a session that has been shut down."""
