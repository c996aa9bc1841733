"""End-to-end sessions against a stateful stand-in daemon."""

from __future__ import annotations

import hashlib
import logging

import pytest

from cctransmission.client.session import TransmissionClient
from cctransmission.client.torrent import Torrent
from cctransmission.models import ClientConfig
from cctransmission.utils.exceptions import DaemonConnectionError, SessionClosedError

pytestmark = pytest.mark.integration


class TorrentTable:
    """Keeps daemon-side state so replies depend on earlier commands."""

    def __init__(self):
        self.torrents: dict[int, dict] = {}
        self.prefs: dict[str, object] = {"port": 51413, "pex": 1, "encryption": "preferred"}
        self._next_id = 1

    def replies(self) -> dict:
        replies = {
            "addfile-detailed": self.add,
            "get-info-all": self.info_all,
            "lookup": self.lookup,
            "get-info": self.info,
            "get-status": self.status,
            "start-all": lambda request: self.set_all(True),
            "stop-all": lambda request: self.set_all(False),
            "start": lambda request: self.set_running(request, True),
            "stop": lambda request: self.set_running(request, False),
            "remove": self.remove,
        }
        for name in ("port", "pex", "encryption"):
            replies[f"get-{name}"] = self._getter(name)
            replies[name] = self._setter(name)
        return replies

    def _getter(self, name):
        return lambda request: [name, self.prefs[name]]

    def _setter(self, name):
        def _set(request):
            self.prefs[name] = request[1]
            return ["succeeded", ""]

        return _set

    def add(self, request):
        args = request[1]
        source = args.get("file") or args.get("data")
        if not source:
            return ["failed", ""]
        if isinstance(source, str):
            source = source.encode()
        info_hash = hashlib.sha1(source).hexdigest()
        if any(t["hash"] == info_hash for t in self.torrents.values()):
            return ["failed", ""]
        torrent_id = self._next_id
        self._next_id += 1
        self.torrents[torrent_id] = {
            "id": torrent_id,
            "hash": info_hash,
            "name": f"torrent-{torrent_id}",
            "running": args.get("autostart", 1),
        }
        return ["succeeded", ""]

    def info_all(self, request):
        return ["info", [{"id": t["id"], "hash": t["hash"]} for t in self.torrents.values()]]

    def lookup(self, request):
        for t in self.torrents.values():
            if t["hash"] in request[1]:
                return ["info", [{"id": t["id"], "hash": t["hash"]}]]
        return ["failed", ""]

    def _select(self, request, fields):
        found = [self.torrents[i] for i in request[1]["id"] if i in self.torrents]
        return ["info", [{"id": t["id"], **{f: t[f] for f in fields if f in t}} for t in found]]

    def info(self, request):
        return self._select(request, request[1]["type"])

    def status(self, request):
        return self._select(request, ["running"])

    def set_all(self, running):
        for t in self.torrents.values():
            t["running"] = int(running)
        return ["succeeded", ""]

    def set_running(self, request, running):
        ids = [i for i in request[1] if i in self.torrents]
        if not ids:
            return ["failed", ""]
        for i in ids:
            self.torrents[i]["running"] = int(running)
        return ["succeeded", ""]

    def remove(self, request):
        ids = [i for i in request[1] if i in self.torrents]
        for i in ids:
            del self.torrents[i]
        return ["succeeded", ""] if ids else ["failed", ""]


@pytest.fixture
def table():
    return TorrentTable()


@pytest.fixture
def daemon(fake_daemon, table):
    return fake_daemon(replies=table.replies())


def test_torrent_lifecycle(daemon, table):
    with TransmissionClient(daemon.path) as client:
        assert client.list_torrents() == []
        assert client.add_torrent(file="/srv/a.torrent", autostart=False) is True
        assert client.add_torrent(data=b"raw torrent bytes") is True
        assert client.add_torrent(file="/srv/a.torrent") is False

        torrents = client.list_torrents()
        assert [t.id for t in torrents] == [1, 2]
        assert all(isinstance(t, Torrent) for t in torrents)

        first = client.lookup(torrents[0].hash)
        assert first == torrents[0]
        assert first.status() == {"id": 1, "running": 0}
        assert first.start() is True
        assert first.status()["running"] == 1

        assert first.refresh(["name"]) is True
        assert first.name == "torrent-1"

        assert client.stop_all() is True
        assert all(t["running"] == 0 for t in table.torrents.values())

        assert first.remove() is True
        assert client.lookup(first.hash) is None
        assert first.start() is False
        assert [t.id for t in client.list_torrents()] == [2]


def test_preferences_persist_across_sessions(daemon):
    with TransmissionClient(daemon.path) as client:
        assert client.set("port", 6881) is True
        assert client.set("encryption", "required") is True

    with TransmissionClient(daemon.path) as client:
        assert client.get("port") == 6881
        assert client.get("encryption") == "required"
        assert client.get("downlimit") is None

    assert daemon.connections == 2


def test_from_config_with_wire_logging(daemon, caplog):
    config = ClientConfig(socket_path=daemon.path, debug=True, read_timeout=5)
    with caplog.at_level(logging.DEBUG, logger="cctransmission.client.wire"):
        with TransmissionClient.from_config(config) as client:
            assert client.get("pex") == 1
    wire = [r.getMessage() for r in caplog.records if r.name == "cctransmission.client.wire"]
    assert ">>> l7:get-pexi1ee" in wire
    assert "<<< l3:pexi1ee" in wire


def test_shutdown_ends_session(daemon):
    client = TransmissionClient(daemon.path)
    assert client.shutdown() is True
    assert daemon.wait_for_requests(1)[-1] == ["quit", "", 1]
    with pytest.raises(SessionClosedError):
        client.start_all()


def test_daemon_going_away(fake_daemon, table):
    daemon = fake_daemon(replies=table.replies())
    client = TransmissionClient(daemon.path)
    client.close()
    daemon.stop()
    with pytest.raises(DaemonConnectionError):
        TransmissionClient(daemon.path)
