"""Thread-safe wrapper around a websocket connection."""

from __future__ import annotations

import json
import threading
from typing import Any, Protocol


class ConnectionClosedError(Exception):
    """Raised when using a client whose connection has been closed."""

    def __init__(self, message: str = "connection Closed") -> None:
        super().__init__(message)


class _Connection(Protocol):
    def send(self, message: bytes | str) -> Any: ...

    def recv(self) -> bytes | str: ...

    def close(self) -> Any: ...


class WsClient:
    """Serialises writes to a websocket and tracks whether it is closed."""

    def __init__(self, conn: _Connection) -> None:
        self.conn = conn
        self.closed = False
        self._lock = threading.Lock()

    def send(self, message: bytes | str) -> None:
        """Send a binary frame."""
        payload = message.encode("utf-8") if isinstance(message, str) else bytes(message)
        with self._lock:
            if self.closed:
                raise ConnectionClosedError()
            self.conn.send(payload)

    def send_json(self, value: Any) -> None:
        """Send value encoded as JSON in a text frame."""
        text = json.dumps(value, ensure_ascii=False, separators=(",", ":")) + "\n"
        with self._lock:
            if self.closed:
                raise ConnectionClosedError()
            self.conn.send(text)

    def receive(self) -> bytes | str:
        """Read the next message."""
        if self.closed:
            raise ConnectionClosedError()
        return self.conn.recv()

    def close(self) -> None:
        """Close the connection once; later calls do nothing."""
        with self._lock:
            if self.closed:
                return
            try:
                self.conn.close()
            except Exception:
                pass
            self.closed = True