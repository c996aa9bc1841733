"""Handle for a single torrent known to the daemon.

A :class:`Torrent` is built from one record of an ``info`` reply and keeps a
reference to the session that produced it, so per-torrent commands go out
over the same connection.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Sequence

from cctransmission.client.protocol import (
    CMD_GET_INFO,
    CMD_GET_STATUS,
    CMD_REMOVE,
    CMD_START,
    CMD_STOP,
    CMD_VERIFY,
)
from cctransmission.utils.exceptions import MessageError

if TYPE_CHECKING:
    from cctransmission.client.session import TransmissionClient

logger = logging.getLogger(__name__)

INFO_FIELDS: tuple[str, ...] = (
    "comment",
    "creator",
    "date",
    "files",
    "hash",
    "name",
    "path",
    "private",
    "saved",
    "size",
    "trackers",
)

STATUS_FIELDS: tuple[str, ...] = (
    "completion",
    "download-speed",
    "download-total",
    "error",
    "error-message",
    "eta",
    "peers-downloading",
    "peers-from",
    "peers-total",
    "peers-uploading",
    "running",
    "state",
    "swarm-speed",
    "upload-speed",
    "upload-total",
)


class Torrent:
    """One torrent as reported by the daemon."""

    def __init__(self, client: TransmissionClient, info: dict[str, Any]):
        if "id" not in info:
            msg = "Torrent record has no id"
            raise MessageError(msg, {"record": [str(key) for key in info]})
        try:
            self._id = int(info["id"])
        except (TypeError, ValueError) as e:
            msg = "Torrent record has a non-integer id"
            raise MessageError(msg, {"id": repr(info["id"])}) from e
        self.client = client
        self.info: dict[str, Any] = dict(info)

    @property
    def id(self) -> int:
        return self._id

    @property
    def hash(self) -> str | None:
        value = self.info.get("hash")
        if isinstance(value, bytes):
            return value.hex()
        return value

    @property
    def name(self) -> str | None:
        return self.info.get("name")

    def __getitem__(self, key: str) -> Any:
        return self.info[key]

    def __repr__(self) -> str:
        return f"Torrent(id={self.id}, hash={self.hash!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Torrent):
            return NotImplemented
        return self.client is other.client and self.id == other.id

    def __hash__(self) -> int:
        return hash((id(self.client), self.id))

    def _simple(self, command: str) -> bool:
        response = self.client.request(command, [self.id])
        if not response.succeeded:
            logger.info(
                "Daemon refused %s for torrent %d (status %r)",
                command,
                self.id,
                response.status,
            )
            return False
        return True

    def start(self) -> bool:
        """Start (resume) this torrent."""
        return self._simple(CMD_START)

    def stop(self) -> bool:
        """Stop (pause) this torrent."""
        return self._simple(CMD_STOP)

    def verify(self) -> bool:
        """Ask the daemon to re-check this torrent's data."""
        return self._simple(CMD_VERIFY)

    def remove(self) -> bool:
        """Remove this torrent from the daemon."""
        return self._simple(CMD_REMOVE)

    def _query(self, command: str, fields: Sequence[str]) -> dict[str, Any] | None:
        response = self.client.request(
            command, {"id": [self.id], "type": list(fields)}
        )
        if not response.is_info:
            return None
        records = response.records()
        return records[0] if records else None

    def refresh(self, fields: Sequence[str] = INFO_FIELDS) -> bool:
        """Re-read static details and merge them into :attr:`info`.

        Returns:
            True if the daemon returned a record, False otherwise

        """
        record = self._query(CMD_GET_INFO, fields)
        if record is None:
            return False
        self.info.update(record)
        return True

    def status(self, fields: Sequence[str] = STATUS_FIELDS) -> dict[str, Any] | None:
        """Return live transfer status, or None if the daemon has none."""
        return self._query(CMD_GET_STATUS, fields)
