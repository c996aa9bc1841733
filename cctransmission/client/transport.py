"""Length-prefixed framing over the daemon's UNIX control socket.

Every message in either direction is eight upper-case ASCII hex digits
giving the payload length, followed by exactly that many payload bytes.
"""

from __future__ import annotations

import logging
import socket

from cctransmission.client.debug import INBOUND, OUTBOUND, DebugTap
from cctransmission.client.protocol import HEADER_SIZE, MAX_FRAME_SIZE
from cctransmission.utils.exceptions import (
    DaemonConnectionError,
    DaemonTimeoutError,
    FramingError,
)

logger = logging.getLogger(__name__)

_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")


def encode_header(length: int) -> bytes:
    """Return the 8-digit hex header for a payload of ``length`` bytes."""
    if length < 0 or length > MAX_FRAME_SIZE:
        msg = f"Payload length {length} does not fit in a {HEADER_SIZE}-digit header"
        raise FramingError(msg, {"length": length})
    return b"%08X" % length


def decode_header(header: bytes) -> int:
    """Parse an 8-digit hex header into a payload length."""
    if len(header) != HEADER_SIZE or not _HEX_DIGITS.issuperset(header):
        msg = "Invalid frame header"
        raise FramingError(msg, {"header": header[:HEADER_SIZE].hex()})
    return int(header, 16)


class FramedTransport:
    """Owns one connected stream socket and frames messages on it."""

    def __init__(self, sock: socket.socket, tap: DebugTap | None = None):
        """Wrap an already connected stream socket.

        Args:
            sock: Connected ``SOCK_STREAM`` socket; the transport takes ownership
            tap: Optional callable receiving every raw payload

        """
        self._sock: socket.socket | None = sock
        self.tap = tap

    @classmethod
    def connect(
        cls,
        path: str,
        timeout: float | None = None,
        tap: DebugTap | None = None,
    ) -> FramedTransport:
        """Connect to the daemon socket at ``path``.

        Args:
            path: Filesystem path of the UNIX control socket
            timeout: Seconds to wait on any single socket operation (None blocks)
            tap: Optional callable receiving every raw payload

        Raises:
            DaemonConnectionError: if the socket cannot be reached

        """
        if not hasattr(socket, "AF_UNIX"):
            msg = "UNIX domain sockets are not available on this platform"
            raise DaemonConnectionError(msg, {"path": path})

        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.settimeout(timeout)
            sock.connect(path)
        except OSError as e:
            sock.close()
            msg = f"Connection to {path} failed: {e}"
            raise DaemonConnectionError(msg, {"path": path}) from e

        logger.debug("Connected to control socket %s", path)
        return cls(sock, tap=tap)

    @property
    def closed(self) -> bool:
        """Return True once the socket has been released."""
        return self._sock is None

    def _require_socket(self) -> socket.socket:
        if self._sock is None:
            msg = "Transport is closed"
            raise DaemonConnectionError(msg)
        return self._sock

    def send(self, payload: bytes) -> None:
        """Write one frame carrying ``payload``.

        Raises:
            FramingError: if ``payload`` is too long for the header
            DaemonConnectionError: if the socket is closed or the write fails

        """
        sock = self._require_socket()
        frame = encode_header(len(payload)) + payload
        try:
            sock.sendall(frame)
        except socket.timeout as e:
            msg = "Timed out writing to daemon"
            raise DaemonTimeoutError(msg, {"length": len(payload)}) from e
        except OSError as e:
            msg = f"Write to daemon failed: {e}"
            raise DaemonConnectionError(msg, {"length": len(payload)}) from e
        self._emit(OUTBOUND, payload)

    def recv(self) -> bytes:
        """Read one frame and return its payload unparsed.

        Raises:
            FramingError: if the header is not hexadecimal
            DaemonConnectionError: if the socket closes before the frame is complete

        """
        length = decode_header(self._recv_exact(HEADER_SIZE))
        payload = self._recv_exact(length)
        self._emit(INBOUND, payload)
        return payload

    def _recv_exact(self, n: int) -> bytes:
        """Read exactly ``n`` bytes, looping over partial reads."""
        sock = self._require_socket()
        buf = bytearray()
        while len(buf) < n:
            try:
                chunk = sock.recv(min(n - len(buf), 65536))
            except socket.timeout as e:
                msg = "Timed out waiting for daemon reply"
                raise DaemonTimeoutError(
                    msg, {"expected": n, "received": len(buf)}
                ) from e
            except OSError as e:
                msg = f"Read from daemon failed: {e}"
                raise DaemonConnectionError(
                    msg, {"expected": n, "received": len(buf)}
                ) from e
            if not chunk:
                msg = "Daemon closed the connection"
                raise DaemonConnectionError(msg, {"expected": n, "received": len(buf)})
            buf.extend(chunk)
        return bytes(buf)

    def _emit(self, direction: str, payload: bytes) -> None:
        if self.tap is None:
            return
        try:
            self.tap(direction, payload)
        except Exception:
            logger.exception("Debug tap raised; ignoring")

    def close(self) -> None:
        """Close the socket. Safe to call more than once."""
        sock, self._sock = self._sock, None
        if sock is None:
            return
        try:
            sock.close()
        except OSError as e:
            logger.debug("Error closing control socket: %s", e)

    def __enter__(self) -> FramedTransport:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
