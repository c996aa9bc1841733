"""Client package for the daemon's control socket."""

from __future__ import annotations

from cctransmission.client.dispatch import SIMPLE_PROPERTIES
from cctransmission.client.protocol import Response, SessionState
from cctransmission.client.session import TransmissionClient
from cctransmission.client.torrent import Torrent
from cctransmission.client.transport import FramedTransport

__all__ = [
    "SIMPLE_PROPERTIES",
    "FramedTransport",
    "Response",
    "SessionState",
    "Torrent",
    "TransmissionClient",
]
