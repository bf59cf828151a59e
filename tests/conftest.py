"""Shared fixtures: a local plaintext collector and a fake transport."""

import socket
import threading
import time
from typing import List

import pytest


class CollectorServer:
    """Minimal TCP collector that records the bytes of every connection."""

    def __init__(self):
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._sock.bind(("127.0.0.1", 0))
        self._sock.listen(8)
        self._sock.settimeout(0.1)
        self._running = True
        self._cond = threading.Condition()
        self.connections: List[bytes] = []
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    @property
    def address(self) -> str:
        host, port = self._sock.getsockname()
        return f"{host}:{port}"

    def _serve(self):
        while self._running:
            try:
                conn, _ = self._sock.accept()
            except socket.timeout:
                continue
            except OSError:
                break
            chunks = []
            with conn:
                conn.settimeout(5.0)
                while True:
                    data = conn.recv(65536)
                    if not data:
                        break
                    chunks.append(data)
            with self._cond:
                self.connections.append(b"".join(chunks))
                self._cond.notify_all()

    def wait_for_connections(self, n: int, timeout: float = 5.0) -> List[bytes]:
        deadline = time.monotonic() + timeout
        with self._cond:
            while len(self.connections) < n:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self._cond.wait(remaining)
            return list(self.connections)

    def stop(self):
        self._running = False
        self._thread.join(timeout=2.0)
        self._sock.close()


@pytest.fixture
def collector():
    """A running local collector; yields the server and stops it afterwards."""
    server = CollectorServer()
    yield server
    server.stop()


@pytest.fixture
def unused_address():
    """Address of a local port nothing listens on."""
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return f"127.0.0.1:{port}"


class FakeTransport:
    """In-memory stand-in for TcpTransport recording what each cycle sends."""

    def __init__(self, sent, fail_connect=False, fail_write=False):
        self.sent = sent
        self.fail_connect = fail_connect
        self.fail_write = fail_write
        self.opened = []
        self.closed = []

    def __call__(self, host, port, connect_timeout=5.0, write_timeout=5.0):
        self.opened.append((host, port, connect_timeout, write_timeout))
        return _FakeConnection(self)


class _FakeConnection:
    def __init__(self, parent):
        self.parent = parent

    def __enter__(self):
        from graphite_exporter.errors import TransportError

        if self.parent.fail_connect:
            raise TransportError("Failed to connect: connection refused")
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.parent.closed.append(exc_type)

    def send(self, payload):
        from graphite_exporter.errors import TransportError

        if self.parent.fail_write:
            raise TransportError("Failed to write: broken pipe")
        self.parent.sent.append(payload)
        return len(payload)


@pytest.fixture
def fake_transport():
    """Factory-compatible fake transport; inspect ``.sent`` for payloads."""
    return FakeTransport(sent=[])
