"""Tests for the UDP exchange loop against loopback responders."""

from __future__ import annotations

import socket
import threading
import time
from unittest.mock import MagicMock, patch

import pytest

from lifx_lan_mcp.errors import TransportError
from lifx_lan_mcp.protocol.framing import Frame, decode_frame, encode_frame
from lifx_lan_mcp.transport.udp_connection import UDPConnection

LOOPBACK = "127.0.0.1"


class _Responder:
    """A loopback UDP peer that answers the first request with canned datagrams."""

    def __init__(self, replies: list[bytes], interval: float = 0.0) -> None:
        self.replies = replies
        self.interval = interval
        self.received: list[Frame] = []
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind((LOOPBACK, 0))
        self.sock.settimeout(3.0)
        self.port = self.sock.getsockname()[1]
        self._thread = threading.Thread(target=self._run, daemon=True)

    def __enter__(self) -> _Responder:
        self._thread.start()
        return self

    def __exit__(self, *exc) -> None:
        self._thread.join(timeout=5.0)
        self.sock.close()

    def _run(self) -> None:
        try:
            data, address = self.sock.recvfrom(1024)
        except OSError:
            return
        self.received.append(decode_frame(data))
        for reply in self.replies:
            if self.interval:
                time.sleep(self.interval)
            try:
                self.sock.sendto(reply, address)
            except OSError:
                # client socket already closed
                return


def _reply(target: int, message_type: int = 22, payload: bytes = b"\xff\xff") -> bytes:
    return encode_frame(Frame(message_type=message_type, target=target, payload=payload))


def test_exchange_collects_replies_in_order():
    """Every decodable reply in the window is returned in arrival order."""
    replies = [_reply(1), _reply(2)]
    with _Responder(replies) as responder:
        conn = UDPConnection(port=responder.port)
        frames = conn.exchange(Frame(message_type=20), LOOPBACK, timeout=0.3)

    assert [f.target for f in frames] == [1, 2]
    assert all(f.address == (LOOPBACK, responder.port) for f in frames)
    assert responder.received[0].message_type == 20


def test_exchange_drops_malformed_datagrams():
    """Datagrams shorter than the header are skipped, not raised."""
    replies = [b"\x01\x02\x03", _reply(7)]
    with _Responder(replies) as responder:
        conn = UDPConnection(port=responder.port)
        frames = conn.exchange(Frame(message_type=20), LOOPBACK, timeout=0.3)

    assert [f.target for f in frames] == [7]


def test_exchange_timeout_returns_empty():
    """A silent peer yields an empty result once the timeout elapses."""
    with _Responder([]) as responder:
        conn = UDPConnection(port=responder.port)
        start = time.monotonic()
        frames = conn.exchange(Frame(message_type=20), LOOPBACK, timeout=0.3)
        elapsed = time.monotonic() - start

    assert frames == []
    assert 0.25 <= elapsed < 1.0


def test_exchange_deadline_is_not_reset_by_replies():
    """Replies arriving steadily do not extend the collection window."""
    replies = [_reply(i) for i in range(20)]
    with _Responder(replies, interval=0.05) as responder:
        conn = UDPConnection(port=responder.port)
        start = time.monotonic()
        frames = conn.exchange(Frame(message_type=20), LOOPBACK, timeout=0.3)
        elapsed = time.monotonic() - start

    assert elapsed < 0.8
    assert 0 < len(frames) < 20


def test_exchange_until_stops_early():
    """Collection ends as soon as the predicate matches."""
    with _Responder([_reply(5)]) as responder:
        conn = UDPConnection(port=responder.port)
        start = time.monotonic()
        frames = conn.exchange(
            Frame(message_type=20), LOOPBACK, timeout=2.0,
            until=lambda f: f.target == 5,
        )
        elapsed = time.monotonic() - start

    assert [f.target for f in frames] == [5]
    assert elapsed < 1.0


def test_exchange_socket_error_raises_transport_error():
    """Send failures surface as TransportError and still close the socket."""
    mock_sock = MagicMock()
    mock_sock.sendto.side_effect = OSError("Network is unreachable")
    mock_socket_cls = MagicMock()
    mock_socket_cls.return_value.__enter__.return_value = mock_sock

    with patch("lifx_lan_mcp.transport.udp_connection.socket.socket", mock_socket_cls):
        conn = UDPConnection()
        with pytest.raises(TransportError) as excinfo:
            conn.exchange(Frame(message_type=2), "255.255.255.255", timeout=0.1)

    assert isinstance(excinfo.value.__cause__, OSError)
    mock_socket_cls.return_value.__exit__.assert_called_once()


def test_exchange_receive_error_discards_replies():
    """A read error after some replies raises instead of returning them."""
    mock_sock = MagicMock()
    mock_sock.recvfrom.side_effect = [
        (_reply(1), (LOOPBACK, 56700)),
        ConnectionResetError("reset"),
    ]
    mock_socket_cls = MagicMock()
    mock_socket_cls.return_value.__enter__.return_value = mock_sock

    with patch("lifx_lan_mcp.transport.udp_connection.socket.socket", mock_socket_cls):
        with pytest.raises(TransportError):
            UDPConnection().exchange(Frame(message_type=20), LOOPBACK, timeout=1.0)


def test_exchange_broadcast_enabled_and_ephemeral_bind():
    """The socket is broadcast-capable and bound to an ephemeral port."""
    mock_sock = MagicMock()
    mock_sock.recvfrom.side_effect = socket.timeout()
    mock_socket_cls = MagicMock()
    mock_socket_cls.return_value.__enter__.return_value = mock_sock

    with patch("lifx_lan_mcp.transport.udp_connection.socket.socket", mock_socket_cls):
        frames = UDPConnection(port=56700).exchange(
            Frame(message_type=2, tagged=True), "10.0.0.255", timeout=0.1
        )

    assert frames == []
    mock_sock.setsockopt.assert_called_once_with(
        socket.SOL_SOCKET, socket.SO_BROADCAST, 1
    )
    mock_sock.bind.assert_called_once_with(("", 0))
    data, destination = mock_sock.sendto.call_args.args
    assert destination == ("10.0.0.255", 56700)
    assert decode_frame(data).tagged is True


def test_exchange_port_override():
    """A per-call port takes precedence over the constructor default."""
    with _Responder([_reply(3)]) as responder:
        conn = UDPConnection(port=9)
        frames = conn.exchange(
            Frame(message_type=20), LOOPBACK, timeout=0.3, port=responder.port
        )

    assert [f.target for f in frames] == [3]
