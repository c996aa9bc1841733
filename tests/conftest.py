"""Pytest configuration and shared fixtures for cctransmission tests."""

from __future__ import annotations

import logging
import os
import shutil
import socket
import tempfile
import threading
from typing import Any, Callable

import pytest

from cctransmission import bencode

DEFAULT_VERSION = {"min": 2, "max": 2, "label": "Transmission 1.00 (fake)"}

# Reply marker: drop the connection instead of answering
HANG_UP = object()


def pytest_configure(config):
    """Register all project markers to avoid warnings when ini isn't loaded."""
    markers = [
        ("unit", "marks tests as unit tests"),
        ("integration", "marks tests as integration tests"),
        ("protocol", "marks tests as wire protocol tests"),
        ("session", "marks tests as session management tests"),
        ("cli", "marks tests as CLI tests"),
        ("config", "marks tests as configuration tests"),
        ("property", "marks tests as property-based tests"),
        ("slow", "marks tests as slow (large payloads)"),
    ]
    for name, desc in markers:
        config.addinivalue_line("markers", f"{name}: {desc}")


requires_unix_sockets = pytest.mark.skipif(
    not hasattr(socket, "AF_UNIX"), reason="UNIX domain sockets not available"
)


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch, tmp_path):
    """Keep user config files and CCT_* variables out of the tests."""
    for name in list(os.environ):
        if name.startswith("CCT_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)

    from cctransmission.config import reset_config

    reset_config()
    yield
    reset_config()


@pytest.fixture(autouse=True)
def cleanup_logging():
    """Clean up logging handlers after each test to prevent closed file errors."""
    yield
    for logger_name in list(logging.Logger.manager.loggerDict.keys()):
        logger = logging.getLogger(logger_name)
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    # setup_logging() detaches the package logger from the root logger
    package_logger = logging.getLogger("cctransmission")
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


def _recv_exact(conn: socket.socket, n: int) -> bytes | None:
    buf = bytearray()
    while len(buf) < n:
        chunk = conn.recv(n - len(buf))
        if not chunk:
            return None
        buf.extend(chunk)
    return bytes(buf)


def read_frame(conn: socket.socket) -> bytes | None:
    """Read one length-prefixed frame, or None on EOF."""
    header = _recv_exact(conn, 8)
    if header is None:
        return None
    return _recv_exact(conn, int(header, 16))


def write_frame(conn: socket.socket, payload: bytes) -> None:
    conn.sendall(b"%08X" % len(payload) + payload)


Reply = Any  # list, HANG_UP, None (no reply) or a callable(request) -> Reply


class FakeDaemon:
    """Minimal stand-in for a daemon's control socket.

    Answers the version handshake, records every decoded command and replies
    from ``replies`` (keyed by command name). Unknown commands get
    ``["failed"]``; ``quit`` gets no reply.
    """

    def __init__(
        self,
        path: str,
        version: dict[str, Any] | None = None,
        replies: dict[str, Reply] | None = None,
        handshake_reply: Any = None,
    ):
        self.path = path
        self.version = version or dict(DEFAULT_VERSION)
        self.replies: dict[str, Reply] = {"quit": None}
        self.replies.update(replies or {})
        self.handshake_reply = handshake_reply
        self.handshakes: list[Any] = []
        self.requests: list[Any] = []
        self.connections = 0
        self._cond = threading.Condition()
        self._stopped = threading.Event()
        self._server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self._server.bind(path)
        self._server.listen(4)
        self._server.settimeout(0.1)
        self._thread = threading.Thread(target=self._serve, daemon=True)

    def start(self) -> FakeDaemon:
        self._thread.start()
        return self

    def stop(self) -> None:
        self._stopped.set()
        self._thread.join(timeout=5)
        self._server.close()

    def wait_for_requests(self, count: int, timeout: float = 5.0) -> list[Any]:
        with self._cond:
            self._cond.wait_for(lambda: len(self.requests) >= count, timeout=timeout)
            return list(self.requests)

    @property
    def command_names(self) -> list[str]:
        return [request[0] for request in self.requests]

    def _serve(self) -> None:
        while not self._stopped.is_set():
            try:
                conn, _ = self._server.accept()
            except socket.timeout:
                continue
            except OSError:
                return
            self.connections += 1
            conn.settimeout(5)
            with conn:
                try:
                    self._handle(conn)
                except OSError:
                    continue

    def _handle(self, conn: socket.socket) -> None:
        frame = read_frame(conn)
        if frame is None:
            return
        self.handshakes.append(bencode.decode(frame))
        reply = self.handshake_reply
        if reply is None:
            reply = {"version": self.version}
        if reply is HANG_UP:
            return
        write_frame(conn, bencode.encode(reply))

        while True:
            frame = read_frame(conn)
            if frame is None:
                return
            request = bencode.decode(frame)
            with self._cond:
                self.requests.append(request)
                self._cond.notify_all()
            reply = self.replies.get(request[0], ["failed"])
            if callable(reply):
                reply = reply(request)
            if reply is HANG_UP:
                return
            if reply is None:
                continue
            write_frame(conn, bencode.encode(reply))


@pytest.fixture
def socket_dir():
    """Short temporary directory for UNIX socket paths."""
    path = tempfile.mkdtemp(prefix="cct-")
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def fake_daemon(socket_dir) -> Callable[..., FakeDaemon]:
    """Factory starting a :class:`FakeDaemon`; stopped after the test."""
    if not hasattr(socket, "AF_UNIX"):
        pytest.skip("UNIX domain sockets not available")
    daemons: list[FakeDaemon] = []

    def _start(**kwargs: Any) -> FakeDaemon:
        path = os.path.join(socket_dir, f"d{len(daemons)}.sock")
        daemon = FakeDaemon(path, **kwargs).start()
        daemons.append(daemon)
        return daemon

    yield _start
    for daemon in daemons:
        daemon.stop()


@pytest.fixture
def connected_client(fake_daemon):
    """Factory returning ``(daemon, client)`` with the handshake already done."""
    from cctransmission.client.session import TransmissionClient

    clients: list[TransmissionClient] = []

    def _connect(**kwargs: Any):
        daemon = fake_daemon(**kwargs)
        client = TransmissionClient(daemon.path)
        clients.append(client)
        return daemon, client

    yield _connect
    for client in clients:
        client.close()
