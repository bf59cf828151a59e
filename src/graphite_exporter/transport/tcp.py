"""Per-cycle TCP connection to the collector."""

import logging
import socket
from typing import Optional

from ..errors import TransportError

logger = logging.getLogger(__name__)


class TcpTransport:
    """A single TCP connection, opened for one export cycle.

    Use as a context manager; the socket is closed on every exit path::

        with TcpTransport(host, port, connect_timeout=5.0) as conn:
            conn.send(payload)
    """

    def __init__(
        self,
        host: str,
        port: int,
        connect_timeout: float = 5.0,
        write_timeout: Optional[float] = 5.0,
    ):
        self.host = host
        self.port = port
        self.connect_timeout = connect_timeout
        self.write_timeout = write_timeout
        self.bytes_sent = 0
        self._sock: Optional[socket.socket] = None

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def is_open(self) -> bool:
        return self._sock is not None

    def open(self) -> "TcpTransport":
        """Connect within ``connect_timeout`` seconds.

        Raises:
            TransportError: If the connection is refused, unreachable or times out
        """
        try:
            self._sock = socket.create_connection(
                (self.host, self.port), timeout=self.connect_timeout
            )
        except OSError as e:
            raise TransportError(f"Failed to connect to {self.address}: {e}") from e

        # None puts the socket back into blocking mode with no write deadline
        self._sock.settimeout(self.write_timeout)
        logger.debug(f"Connected to {self.address}")
        return self

    def send(self, payload: bytes) -> int:
        """Write the whole payload.

        Raises:
            TransportError: If the connection is closed, broken, or the write deadline passes
        """
        if self._sock is None:
            raise TransportError(f"Connection to {self.address} is not open")
        if not payload:
            return 0
        try:
            self._sock.sendall(payload)
        except OSError as e:
            raise TransportError(f"Failed to write to {self.address}: {e}") from e
        self.bytes_sent += len(payload)
        return len(payload)

    def close(self) -> None:
        if self._sock is None:
            return
        try:
            self._sock.close()
        finally:
            self._sock = None
            logger.debug(f"Closed connection to {self.address}")

    def __enter__(self) -> "TcpTransport":
        return self.open()

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
