"""Tests for typed reply payload decoders."""

import struct

import pytest

from lifx_lan_mcp.errors import MalformedFrameError
from lifx_lan_mcp.protocol.framing import Frame, pack_string
from lifx_lan_mcp.protocol.messages import MessageType
from lifx_lan_mcp.protocol.parser import (
    HSBK,
    EchoPayload,
    FirmwareInfo,
    GroupInfo,
    Label,
    LightState,
    PowerLevel,
    SignalInfo,
    StateInfo,
    StateService,
    VersionInfo,
    decode_payload,
    parse_payload,
)


def _light_state_payload(color: HSBK, power: int, label: str) -> bytes:
    return color.to_bytes() + b"\x00\x00" + struct.pack("<H", power) + pack_string(label, 32) + b"\x00" * 8


def test_state_service():
    """StateService is service byte then u32 port."""
    service = StateService.from_bytes(b"\x01" + struct.pack("<I", 56700))
    assert service.service == 1
    assert service.port == 56700


def test_signal_info():
    """Signal is a float followed by tx and rx counters."""
    payload = struct.pack("<fIIh", 0.25, 100, 200, 0)
    info = SignalInfo.from_bytes(payload)
    assert info.signal == pytest.approx(0.25)
    assert info.tx == 100
    assert info.rx == 200


def test_version_info():
    info = VersionInfo.from_bytes(struct.pack("<III", 1, 27, 2))
    assert (info.vendor_id, info.product_id, info.version) == (1, 27, 2)


def test_firmware_info_skips_reserved():
    """Version is read after the 8 reserved bytes."""
    payload = struct.pack("<Q", 1_500_000_000_000_000_000) + b"\xaa" * 8 + struct.pack("<I", 0x00020050)
    info = FirmwareInfo.from_bytes(payload)
    assert info.build == 1_500_000_000_000_000_000
    assert info.version == 0x00020050


def test_state_info():
    info = StateInfo.from_bytes(struct.pack("<QQQ", 10, 20, 30))
    assert (info.time, info.uptime, info.downtime) == (10, 20, 30)


def test_group_info():
    """Location/group label is trimmed and the timestamp follows it."""
    payload = b"\x11" * 16 + pack_string("Home", 32) + struct.pack("<Q", 42)
    group = GroupInfo.from_bytes(payload)
    assert group.location_id == b"\x11" * 16
    assert group.label == "Home"
    assert group.updated_at == 42


def test_light_state():
    """LightState reads HSBK, power at offset 10 and the label."""
    color = HSBK(hue=100, saturation=200, brightness=300, kelvin=4000)
    state = LightState.from_bytes(_light_state_payload(color, 0xFFFF, "Desk"))
    assert state.color == color
    assert state.power is True
    assert state.label == "Desk"


def test_power_level():
    assert PowerLevel.from_bytes(b"\xff\xff").on is True
    assert PowerLevel.from_bytes(b"\x00\x00").on is False


def test_label_trims_padding():
    assert Label.from_bytes(pack_string("Hall", 32)).label == "Hall"


def test_echo_payload():
    payload = b"hello".ljust(64, b"\x00")
    assert EchoPayload.from_bytes(payload).payload == payload


def test_hsbk_roundtrip():
    color = HSBK(hue=65535, saturation=0, brightness=32768, kelvin=9000)
    assert HSBK.from_bytes(color.to_bytes()) == color


def test_hsbk_out_of_range():
    with pytest.raises(ValueError):
        HSBK(hue=70000)


@pytest.mark.parametrize(
    "record",
    [StateService, SignalInfo, VersionInfo, FirmwareInfo, StateInfo,
     GroupInfo, LightState, PowerLevel, Label, EchoPayload],
)
def test_short_payload_is_malformed(record):
    """Every decoder rejects payloads shorter than its layout."""
    with pytest.raises(MalformedFrameError):
        record.from_bytes(b"\x00" * (record.SIZE - 1))


def test_trailing_bytes_ignored():
    """Bytes past the fixed layout are ignored."""
    assert PowerLevel.from_bytes(b"\x01\x00\xff\xff").on is True


def test_parse_payload_dispatches_by_type():
    """parse_payload picks the decoder for the frame's message type."""
    frame = Frame(message_type=MessageType.STATE_VERSION, payload=struct.pack("<III", 1, 2, 3))
    assert parse_payload(frame) == VersionInfo(vendor_id=1, product_id=2, version=3)


def test_parse_payload_unknown_type_returns_raw():
    frame = Frame(message_type=9999, payload=b"\x01\x02")
    assert parse_payload(frame) == b"\x01\x02"


def test_parse_payload_short_is_malformed():
    frame = Frame(message_type=MessageType.STATE_INFO, payload=b"\x00" * 8)
    with pytest.raises(MalformedFrameError):
        parse_payload(frame)


def test_decode_payload_by_reply_type():
    """Raw reply bytes decode with the record registered for their type."""
    assert decode_payload(MessageType.STATE_POWER, b"\xff\xff") == PowerLevel(on=True)
    assert decode_payload(MessageType.STATE_POWER_DURATION, b"\x00\x00") == PowerLevel(on=False)
