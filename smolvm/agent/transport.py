"""Length-prefixed JSON transport over a connected stream socket."""

from __future__ import annotations

import json
import socket
import struct
from types import TracebackType

from smolvm.errors import AgentError
from smolvm.protocol.requests import AgentRequest
from smolvm.protocol.responses import AgentResponse, parse_response
from smolvm.protocol.wire import encode_message

DEFAULT_TIMEOUT = 30.0
"""Default socket timeout in seconds."""

_HEADER = struct.Struct(">I")


class Transport:
    """Sends agent requests and reads agent responses over a socket."""

    def __init__(self, sock: socket.socket, timeout: float | None = DEFAULT_TIMEOUT) -> None:
        self._sock = sock
        self.set_timeout(timeout)

    def __enter__(self) -> Transport:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def set_timeout(self, seconds: float | None) -> None:
        """Set the socket timeout; ``None`` blocks without limit."""
        self._sock.settimeout(seconds)

    def send(self, request: AgentRequest) -> None:
        """Write one request frame without waiting for an answer."""
        try:
            frame = encode_message(request)
        except (TypeError, ValueError) as exc:
            raise AgentError(f"serialize error: {exc}") from exc
        try:
            self._sock.sendall(frame)
        except OSError as exc:
            raise AgentError(f"write failed: {exc}") from exc

    def receive(self) -> AgentResponse:
        """Read one response frame."""
        header = self._read_exact(_HEADER.size, "read header failed")
        (length,) = _HEADER.unpack(header)
        body = self._read_exact(length, "read payload failed")
        try:
            return parse_response(json.loads(body))
        except (ValueError, TypeError) as exc:
            raise AgentError(f"parse failed: {exc}") from exc

    def request(self, request: AgentRequest) -> AgentResponse:
        """Send a request and return the response that follows it."""
        self.send(request)
        return self.receive()

    def close(self) -> None:
        """Close the underlying socket."""
        self._sock.close()

    def _read_exact(self, size: int, context: str) -> bytes:
        buffer = bytearray(size)
        view = memoryview(buffer)
        filled = 0
        while filled < size:
            try:
                count = self._sock.recv_into(view[filled:])
            except OSError as exc:
                raise AgentError(f"{context}: {exc}") from exc
            if count == 0:
                raise AgentError(f"{context}: connection closed")
            filled += count
        return bytes(buffer)