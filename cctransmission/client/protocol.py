"""IPC protocol definitions for daemon communication.

Defines constants, session states and the response wrapper for the
length-prefixed bencoded control protocol.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from cctransmission.utils.exceptions import MessageError

# Protocol constants
PROTOCOL_VERSION = 2
HEADER_SIZE = 8
MAX_FRAME_SIZE = 0xFFFFFFFF
MESSAGE_TAG = 1

# Response status tokens
STATUS_SUCCEEDED = "succeeded"
STATUS_INFO = "info"

# Command names
CMD_ADD_FILE_DETAILED = "addfile-detailed"
CMD_LOOKUP = "lookup"
CMD_GET_INFO = "get-info"
CMD_GET_INFO_ALL = "get-info-all"
CMD_GET_STATUS = "get-status"
CMD_START_ALL = "start-all"
CMD_STOP_ALL = "stop-all"
CMD_QUIT = "quit"
CMD_START = "start"
CMD_STOP = "stop"
CMD_REMOVE = "remove"
CMD_VERIFY = "verify"


class SessionState(str, Enum):
    """Lifecycle states of a control session."""

    UNCONNECTED = "unconnected"
    HANDSHAKING = "handshaking"
    READY = "ready"
    CLOSED = "closed"


def version_request(version: int = PROTOCOL_VERSION) -> dict[str, Any]:
    """Build the handshake message restricting the daemon to ``version``."""
    return {"version": {"min": version, "max": version}}


def build_command(name: str, *args: Any) -> list[Any]:
    """Build ``[name, *args, tag]`` as sent on the wire."""
    return [name, *args, MESSAGE_TAG]


@dataclass(frozen=True)
class Response:
    """A decoded daemon reply, read positionally."""

    status: str
    payload: Any = None
    raw: Any = None

    @classmethod
    def from_message(cls, message: Any) -> Response:
        """Validate a decoded message and wrap it.

        Raises:
            MessageError: if the message is not a list headed by a string token

        """
        if not isinstance(message, list) or not message:
            msg = "Daemon reply is not a non-empty list"
            raise MessageError(msg, {"reply": repr(message)[:200]})
        status = message[0]
        if isinstance(status, bytes):
            status = status.decode("utf-8", errors="replace")
        if not isinstance(status, str):
            msg = "Daemon reply does not start with a status token"
            raise MessageError(msg, {"reply": repr(message)[:200]})
        payload = message[1] if len(message) > 1 else None
        return cls(status=status, payload=payload, raw=message)

    @property
    def succeeded(self) -> bool:
        """Return True if the daemon reported success."""
        return self.status == STATUS_SUCCEEDED

    @property
    def is_info(self) -> bool:
        """Return True if the reply carries torrent records."""
        return self.status == STATUS_INFO

    def records(self) -> list[dict[str, Any]]:
        """Return the payload's record maps, skipping anything that is not a map."""
        if not isinstance(self.payload, list):
            return []
        return [item for item in self.payload if isinstance(item, dict)]
