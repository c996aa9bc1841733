"""cctransmission - control-socket client for the Transmission BitTorrent daemon."""

from __future__ import annotations

__version__ = "0.4.0"

from cctransmission.client import (
    SIMPLE_PROPERTIES,
    FramedTransport,
    SessionState,
    Torrent,
    TransmissionClient,
)
from cctransmission.models import ServerInfo
from cctransmission.utils.exceptions import (
    CCTError,
    DaemonConnectionError,
    DaemonTimeoutError,
    InvalidArgumentError,
    ProtocolVersionError,
    SessionClosedError,
    UnknownPropertyError,
)

__all__ = [
    "SIMPLE_PROPERTIES",
    "CCTError",
    "DaemonConnectionError",
    "DaemonTimeoutError",
    "FramedTransport",
    "InvalidArgumentError",
    "ProtocolVersionError",
    "ServerInfo",
    "SessionClosedError",
    "SessionState",
    "Torrent",
    "TransmissionClient",
    "UnknownPropertyError",
    "__version__",
]
