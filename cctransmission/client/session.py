"""Control session with a running Transmission daemon.

The session owns one control-socket connection, negotiates protocol
version 2 and then issues strictly synchronous commands: each call writes
one frame and blocks until the matching reply frame has been read. The
protocol has no request ids, so a session must never be used by two
threads at once.
"""

from __future__ import annotations

import logging
import os
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from cctransmission import bencode
from cctransmission.client.debug import DebugOption, resolve_tap
from cctransmission.client.dispatch import PropertyDispatchMixin
from cctransmission.client.protocol import (
    CMD_ADD_FILE_DETAILED,
    CMD_GET_INFO_ALL,
    CMD_LOOKUP,
    CMD_QUIT,
    CMD_START_ALL,
    CMD_STOP_ALL,
    PROTOCOL_VERSION,
    Response,
    SessionState,
    build_command,
    version_request,
)
from cctransmission.client.torrent import Torrent
from cctransmission.client.transport import FramedTransport
from cctransmission.models import ServerInfo
from cctransmission.utils.exceptions import (
    BencodeError,
    DaemonConnectionError,
    HandshakeError,
    InvalidArgumentError,
    MessageError,
    ProtocolError,
    ProtocolVersionError,
    SessionClosedError,
)

logger = logging.getLogger(__name__)


class TransmissionClient(PropertyDispatchMixin):
    """Synchronous client for the daemon's control socket.

    Example::

        with TransmissionClient("~/.transmission/daemon/socket") as client:
            client.add_torrent(file="freebsd.torrent", autostart=False)
            client.set("downlimit", 512)

    Simple preferences (``automap``, ``autostart``, ``directory``,
    ``downlimit``, ``encryption``, ``pex``, ``port``, ``uplimit``) are read
    and written with :meth:`get` and :meth:`set`.
    """

    def __init__(
        self,
        socket_path: str,
        *,
        debug: DebugOption = False,
        timeout: float | None = None,
    ):
        """Connect to the daemon and perform the version handshake.

        Args:
            socket_path: Path to the daemon's UNIX control socket
            debug: True to log raw traffic, or a callable ``(direction, payload)``
            timeout: Optional read timeout in seconds (None blocks indefinitely)

        Raises:
            InvalidArgumentError: if no socket path is given
            DaemonConnectionError: if the socket cannot be reached
            ProtocolVersionError: if the daemon does not speak protocol version 2

        """
        self._transport: FramedTransport | None = None
        self._state = SessionState.UNCONNECTED
        self._server_info: ServerInfo | None = None

        if not socket_path:
            msg = "No control socket specified"
            raise InvalidArgumentError(msg)

        self.socket_path = os.path.expanduser(socket_path)
        self._transport = FramedTransport.connect(
            self.socket_path, timeout=timeout, tap=resolve_tap(debug)
        )
        try:
            self._handshake()
        except BaseException:
            self.close()
            raise

    @classmethod
    def from_config(cls, config: Any = None) -> TransmissionClient:
        """Create a client from a :class:`~cctransmission.models.ClientConfig`.

        Uses the global configuration when ``config`` is None.
        """
        if config is None:
            from cctransmission.config import get_client_config

            config = get_client_config()
        return cls(
            config.resolved_socket_path(),
            debug=config.debug,
            timeout=config.read_timeout,
        )

    # -- lifecycle ---------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state == SessionState.CLOSED

    @property
    def server_info(self) -> ServerInfo:
        """Version range and label the daemon announced."""
        if self._server_info is None:
            msg = "Handshake has not completed"
            raise SessionClosedError(msg)
        return self._server_info

    def _handshake(self) -> None:
        self._state = SessionState.HANDSHAKING
        self._send(version_request(PROTOCOL_VERSION))
        reply = self._recv()

        version = reply.get("version") if isinstance(reply, dict) else None
        if not isinstance(version, dict):
            msg = "Daemon handshake reply has no version map"
            raise HandshakeError(msg, {"reply": repr(reply)[:200]})
        try:
            info = ServerInfo(**version)
        except (PydanticValidationError, TypeError) as e:
            msg = f"Malformed version map in handshake reply: {e}"
            raise HandshakeError(msg) from e

        if not info.supports(PROTOCOL_VERSION):
            msg = f"Daemon does not support protocol version {PROTOCOL_VERSION}"
            raise ProtocolVersionError(
                msg, {"min": info.min, "max": info.max, "label": info.label}
            )

        self._server_info = info
        self._state = SessionState.READY
        logger.info("Connected to %s (protocol %d-%d)", info.label, info.min, info.max)

    def close(self) -> None:
        """Close the connection without asking the daemon to quit."""
        transport, self._transport = self._transport, None
        self._state = SessionState.CLOSED
        if transport is not None:
            transport.close()

    def shutdown(self) -> bool:
        """Ask the daemon to quit, then close the connection.

        The daemon may exit before replying, so no reply is read and the
        result is always True.
        """
        if self._state == SessionState.READY and self._transport is not None:
            try:
                self._send(build_command(CMD_QUIT, ""))
            except (DaemonConnectionError, ProtocolError) as e:
                logger.debug("Quit command not delivered: %s", e)
        self.close()
        return True

    def __enter__(self) -> TransmissionClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __del__(self) -> None:
        transport = getattr(self, "_transport", None)
        if transport is not None:
            transport.close()

    def __repr__(self) -> str:
        return f"TransmissionClient({self.socket_path!r}, state={self._state.value})"

    # -- wire --------------------------------------------------------------

    def _send(self, message: Any) -> None:
        if self._transport is None:
            msg = "Session is closed"
            raise SessionClosedError(msg)
        self._transport.send(bencode.encode(message))

    def _recv(self) -> Any:
        if self._transport is None:
            msg = "Session is closed"
            raise SessionClosedError(msg)
        payload = self._transport.recv()
        try:
            return bencode.decode(payload)
        except BencodeError as e:
            msg = "Daemon sent an undecodable reply"
            raise MessageError(msg, e.details) from e

    def request(self, name: str, *args: Any) -> Response:
        """Send ``[name, *args, tag]`` and return the daemon's reply.

        This is the primitive every command, and every :class:`Torrent`,
        goes through.

        Raises:
            SessionClosedError: if the session has been shut down
            DaemonConnectionError: if the connection fails; the session is closed
            ProtocolError: if the reply cannot be understood; the session is closed

        """
        if self._state != SessionState.READY:
            msg = f"Cannot send {name!r}: session is {self._state.value}"
            raise SessionClosedError(msg)

        command = build_command(name, *args)
        try:
            self._send(command)
            return Response.from_message(self._recv())
        except (DaemonConnectionError, ProtocolError):
            logger.warning("Closing session after failed %r command", name)
            self.close()
            raise

    def _torrents(self, name: str, records: list[dict[str, Any]]) -> list[Torrent]:
        """Build handles for the records of an ``info`` reply.

        A malformed record is a protocol error and closes the session.
        """
        try:
            return [Torrent(self, record) for record in records]
        except MessageError:
            logger.warning("Closing session after malformed %r reply", name)
            self.close()
            raise

    # -- commands ----------------------------------------------------------

    def add_torrent(
        self,
        file: str | None = None,
        data: bytes | None = None,
        autostart: bool | None = None,
        directory: str | None = None,
    ) -> bool:
        """Add a torrent from a path the daemon can read, or from raw bytes.

        Args:
            file: Path to a .torrent file, as seen by the daemon
            data: Contents of a .torrent file
            autostart: Start downloading immediately
            directory: Directory to download into

        Returns:
            True if the daemon added the torrent, False if it refused

        Raises:
            InvalidArgumentError: unless exactly one of ``file``/``data`` is given

        """
        if file is not None and data is not None:
            msg = "file and data are mutually exclusive"
            raise InvalidArgumentError(msg)
        if file is None and data is None:
            msg = "either file or data must be specified"
            raise InvalidArgumentError(msg)

        args: dict[str, Any] = {}
        if file is not None:
            args["file"] = os.fspath(file)
        if data is not None:
            args["data"] = bytes(data)
        if directory is not None:
            args["directory"] = os.fspath(directory)
        if autostart is not None:
            args["autostart"] = int(bool(autostart))

        response = self.request(CMD_ADD_FILE_DETAILED, args)
        if not response.succeeded:
            logger.info("Daemon refused torrent (status %r)", response.status)
            return False
        return True

    def lookup(self, info_hash: str) -> Torrent | None:
        """Return the active torrent with ``info_hash``, or None."""
        response = self.request(CMD_LOOKUP, [info_hash])
        if not response.is_info:
            return None
        records = response.records()
        if not records:
            return None
        torrent = self._torrents(CMD_LOOKUP, records[:1])[0]
        if torrent.id < 1:
            return None
        return torrent

    def list_torrents(self) -> list[Torrent] | None:
        """Return every active torrent in daemon order.

        Returns:
            A list (possibly empty), or None if the daemon did not answer with info

        """
        response = self.request(CMD_GET_INFO_ALL, ["hash"])
        if not response.is_info:
            return None
        return self._torrents(CMD_GET_INFO_ALL, response.records())

    def start_all(self) -> bool:
        """Start all paused torrents."""
        return self.request(CMD_START_ALL, "").succeeded

    def stop_all(self) -> bool:
        """Stop all running torrents."""
        return self.request(CMD_STOP_ALL, "").succeeded
