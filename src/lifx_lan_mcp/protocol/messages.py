"""Message type codes and request payload builders.

Each request kind is identified by a 16-bit type code carried in the
frame header. Requests that change device state carry a fixed-layout
payload built here.
"""

from __future__ import annotations

import struct
from enum import IntEnum
from typing import TYPE_CHECKING

from .framing import pack_string

if TYPE_CHECKING:
    from .parser import HSBK

LABEL_SIZE = 32
ECHO_SIZE = 64
SERVICE_UDP = 1

POWER_ON = 0xFFFF
POWER_OFF = 0


class MessageType(IntEnum):
    """Protocol message type codes."""

    GET_SERVICE = 2
    STATE_SERVICE = 3
    GET_HOST_INFO = 12
    STATE_HOST_INFO = 13
    GET_HOST_FIRMWARE = 14
    STATE_HOST_FIRMWARE = 15
    GET_WIFI_INFO = 16
    STATE_WIFI_INFO = 17
    GET_WIFI_FIRMWARE = 18
    STATE_WIFI_FIRMWARE = 19
    GET_POWER = 20
    SET_POWER = 21
    STATE_POWER = 22
    GET_LABEL = 23
    SET_LABEL = 24
    STATE_LABEL = 25
    GET_VERSION = 32
    STATE_VERSION = 33
    GET_INFO = 34
    STATE_INFO = 35
    ACKNOWLEDGEMENT = 45
    GET_LOCATION = 48
    STATE_LOCATION = 50
    GET_GROUP = 51
    STATE_GROUP = 53
    ECHO_REQUEST = 58
    ECHO_RESPONSE = 59
    GET_COLOR = 101
    SET_COLOR = 102
    STATE_COLOR = 107
    GET_POWER_DURATION = 116
    SET_POWER_DURATION = 117
    STATE_POWER_DURATION = 118


# Request type -> reply type the device answers with
REPLY_TYPES: dict[MessageType, MessageType] = {
    MessageType.GET_SERVICE: MessageType.STATE_SERVICE,
    MessageType.GET_HOST_INFO: MessageType.STATE_HOST_INFO,
    MessageType.GET_HOST_FIRMWARE: MessageType.STATE_HOST_FIRMWARE,
    MessageType.GET_WIFI_INFO: MessageType.STATE_WIFI_INFO,
    MessageType.GET_WIFI_FIRMWARE: MessageType.STATE_WIFI_FIRMWARE,
    MessageType.GET_POWER: MessageType.STATE_POWER,
    MessageType.GET_LABEL: MessageType.STATE_LABEL,
    MessageType.GET_VERSION: MessageType.STATE_VERSION,
    MessageType.GET_INFO: MessageType.STATE_INFO,
    MessageType.GET_LOCATION: MessageType.STATE_LOCATION,
    MessageType.GET_GROUP: MessageType.STATE_GROUP,
    MessageType.ECHO_REQUEST: MessageType.ECHO_RESPONSE,
    MessageType.GET_COLOR: MessageType.STATE_COLOR,
    MessageType.SET_COLOR: MessageType.STATE_COLOR,
    MessageType.GET_POWER_DURATION: MessageType.STATE_POWER_DURATION,
}


def _check_duration(duration_ms: int) -> None:
    if not 0 <= duration_ms <= 0xFFFFFFFF:
        raise ValueError(f"Duration must be 0-4294967295 ms, got {duration_ms}")


def build_set_power(on: bool) -> bytes:
    """Build a SetPower payload (u16 level, 0 or 65535)."""
    return struct.pack("<H", POWER_ON if on else POWER_OFF)


def build_set_label(label: str) -> bytes:
    """Build a SetLabel payload.

    Labels longer than 32 bytes once UTF-8 encoded are truncated.
    """
    return pack_string(label, LABEL_SIZE)


def build_set_color(color: HSBK, duration_ms: int = 0) -> bytes:
    """Build a SetColor payload: reserved byte, HSBK, u32 transition time.

    Args:
        color: Target color.
        duration_ms: Transition time in milliseconds.
    """
    _check_duration(duration_ms)
    return b"\x00" + color.to_bytes() + struct.pack("<I", duration_ms)


def build_set_power_duration(on: bool, duration_ms: int = 0) -> bytes:
    """Build a SetLightPower payload: u16 level, u32 transition time."""
    _check_duration(duration_ms)
    return struct.pack("<HI", POWER_ON if on else POWER_OFF, duration_ms)


def build_echo_request(data: bytes) -> bytes:
    """Build an EchoRequest payload padded to 64 bytes.

    Raises:
        ValueError: If ``data`` is longer than 64 bytes.
    """
    if len(data) > ECHO_SIZE:
        raise ValueError(
            f"Echo request max length is {ECHO_SIZE} bytes, got {len(data)}"
        )
    return bytes(data).ljust(ECHO_SIZE, b"\x00")
