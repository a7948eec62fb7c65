"""Tests for broadcast discovery and the client facade."""

import struct
from unittest.mock import MagicMock

from lifx_lan_mcp.client import LanClient
from lifx_lan_mcp.config import LanConfig
from lifx_lan_mcp.protocol.framing import Frame
from lifx_lan_mcp.protocol.messages import MessageType
from lifx_lan_mcp.transport.discovery import DeviceDescriptor, discover
from lifx_lan_mcp.transport.dispatcher import Dispatcher


def _service_reply(target: int, ip: str, service: int = 1, port: int = 56700) -> Frame:
    return Frame(
        message_type=MessageType.STATE_SERVICE,
        target=target,
        payload=struct.pack("<BI", service, port),
        address=(ip, 56700),
    )


def _dispatcher(replies: list[Frame]) -> tuple[Dispatcher, MagicMock]:
    conn = MagicMock()
    conn.exchange.return_value = replies
    return Dispatcher(LanConfig(), conn), conn


def test_discover_builds_descriptors():
    """Each UDP service reply becomes a descriptor in arrival order."""
    dispatcher, conn = _dispatcher([
        _service_reply(0x0605040302D0, "192.168.1.10", port=56700),
        _service_reply(0x0A0908070605, "192.168.1.11", port=56701),
    ])
    devices = discover(dispatcher, timeout=0.2)

    assert devices == [
        DeviceDescriptor(0x0605040302D0, "192.168.1.10", 56700),
        DeviceDescriptor(0x0A0908070605, "192.168.1.11", 56701),
    ]
    frame = conn.exchange.call_args.args[0]
    assert frame.message_type == MessageType.GET_SERVICE
    assert frame.tagged is True
    assert conn.exchange.call_args.args[2] == 0.2


def test_discover_skips_non_udp_service():
    """A StateService whose service byte is not 1 is excluded."""
    dispatcher, _ = _dispatcher([
        _service_reply(1, "192.168.1.10", service=5),
        _service_reply(2, "192.168.1.11"),
    ])
    devices = discover(dispatcher)
    assert [d.hardware_address for d in devices] == [2]


def test_discover_skips_short_payload():
    short = Frame(message_type=MessageType.STATE_SERVICE, target=3, payload=b"\x01", address=("10.0.0.2", 56700))
    dispatcher, _ = _dispatcher([short])
    assert discover(dispatcher) == []


def test_discover_keeps_duplicates():
    """A device answering twice is reported twice."""
    dispatcher, _ = _dispatcher([
        _service_reply(7, "192.168.1.10"),
        _service_reply(7, "192.168.1.10"),
    ])
    assert len(discover(dispatcher)) == 2


def test_mac_address_format():
    """MAC renders the low 48 bits in wire (little-endian) order."""
    device = DeviceDescriptor(0x0000_5634_12D5_73D0, "10.0.0.2", 56700)
    assert device.mac_address == "d0:73:d5:12:34:56"


def test_client_request_returns_payload():
    conn = MagicMock()
    conn.exchange.return_value = [Frame(message_type=22, target=9, payload=b"\xff\xff")]
    client = LanClient(LanConfig(), conn)
    payload = client.request(9, MessageType.GET_POWER, b"", MessageType.STATE_POWER)
    assert payload == b"\xff\xff"


def test_client_set_broadcast_address_next_call():
    """The setter changes the destination of subsequent calls."""
    conn = MagicMock()
    conn.exchange.return_value = []
    client = LanClient(LanConfig(), conn)
    client.set_broadcast_address("192.168.7.255")
    client.discover()

    assert client.broadcast_address == "192.168.7.255"
    assert conn.exchange.call_args.args[1] == "192.168.7.255"
