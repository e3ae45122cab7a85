import socket
import struct

import pytest

from smolvm.agent.transport import DEFAULT_TIMEOUT, Transport
from smolvm.errors import AgentError
from smolvm.protocol.requests import Ping, Pull
from smolvm.protocol.responses import Completed, Error, Pong
from smolvm.protocol.wire import PROTOCOL_VERSION, encode_message


@pytest.fixture
def pair():
    left, right = socket.socketpair()
    yield left, right
    left.close()
    right.close()


def _recv_all(sock, size):
    data = b""
    while len(data) < size:
        chunk = sock.recv(size - len(data))
        if not chunk:
            break
        data += chunk
    return data


def test_default_timeout_applied(pair):
    left, _ = pair
    Transport(left)
    assert left.gettimeout() == DEFAULT_TIMEOUT == 30.0


def test_set_timeout(pair):
    left, _ = pair
    transport = Transport(left)
    transport.set_timeout(3605.0)
    assert left.gettimeout() == 3605.0
    transport.set_timeout(None)
    assert left.gettimeout() is None


def test_send_ping_wire_bytes(pair):
    left, right = pair
    expected = b'\x00\x00\x00\x11{"method":"ping"}'
    assert encode_message(Ping()) == expected
    Transport(left).send(Ping())
    received = _recv_all(right, len(expected))
    assert received == expected


def test_send_matches_encode_message(pair):
    left, right = pair
    request = Pull(image="alpine:latest", platform="linux/arm64")
    Transport(left).send(request)
    frame = encode_message(request)
    assert _recv_all(right, len(frame)) == frame


def test_receive_response(pair):
    left, right = pair
    right.sendall(encode_message(Pong(version=PROTOCOL_VERSION)))
    assert Transport(left).receive() == Pong(version=PROTOCOL_VERSION)


def test_request_round_trip(pair):
    left, right = pair
    response = Completed(exit_code=0, stdout="hello\n", stderr="")
    right.sendall(encode_message(response))
    result = Transport(left).request(Ping())
    assert result == response
    sent = encode_message(Ping())
    assert _recv_all(right, len(sent)) == sent


def test_receive_error_response(pair):
    left, right = pair
    right.sendall(encode_message(Error(message="not found", code="NOT_FOUND")))
    assert Transport(left).receive() == Error(message="not found", code="NOT_FOUND")


def test_receive_several_frames_in_order(pair):
    left, right = pair
    right.sendall(encode_message(Pong(version=1)) + encode_message(Pong(version=2)))
    transport = Transport(left)
    assert [transport.receive(), transport.receive()] == [Pong(version=1), Pong(version=2)]


def test_receive_header_eof(pair):
    left, right = pair
    right.close()
    with pytest.raises(AgentError, match="^read header failed"):
        Transport(left).receive()


def test_receive_payload_eof(pair):
    left, right = pair
    right.sendall(struct.pack(">I", 10) + b"{}")
    right.close()
    with pytest.raises(AgentError, match="^read payload failed"):
        Transport(left).receive()


def test_receive_invalid_json(pair):
    left, right = pair
    body = b"not json"
    right.sendall(struct.pack(">I", len(body)) + body)
    with pytest.raises(AgentError, match="^parse failed"):
        Transport(left).receive()


def test_receive_unknown_status(pair):
    left, right = pair
    right.sendall(encode_message({"status": "bogus"}))
    with pytest.raises(AgentError, match="^parse failed"):
        Transport(left).receive()


def test_receive_timeout(pair):
    left, _ = pair
    transport = Transport(left, timeout=0.05)
    with pytest.raises(AgentError, match="^read header failed"):
        transport.receive()


def test_context_manager_closes(pair):
    left, right = pair
    with Transport(left) as transport:
        transport.send(Ping())
    assert left.fileno() == -1
    frame = encode_message(Ping())
    assert _recv_all(right, len(frame) + 1) == frame


def test_send_after_close_fails(pair):
    left, _ = pair
    transport = Transport(left)
    transport.close()
    with pytest.raises(AgentError, match="^write failed"):
        transport.send(Ping())