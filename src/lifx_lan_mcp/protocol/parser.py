"""Typed decoders for device reply payloads.

Every reply kind has a fixed little-endian layout. A record's ``SIZE``
is the number of payload bytes its layout covers; shorter payloads are
malformed and trailing bytes are ignored.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import ClassVar

from ..errors import MalformedFrameError
from .framing import Frame, unpack_string
from .messages import ECHO_SIZE, LABEL_SIZE, MessageType


def _require(payload: bytes, size: int, name: str) -> None:
    if len(payload) < size:
        raise MalformedFrameError(
            f"{name} payload must be {size} bytes, got {len(payload)}"
        )


@dataclass(frozen=True)
class StateService:
    """Parsed StateService (3) reply."""

    SIZE: ClassVar[int] = 5

    service: int
    port: int

    @classmethod
    def from_bytes(cls, payload: bytes) -> StateService:
        _require(payload, cls.SIZE, "StateService")
        service, port = struct.unpack_from("<BI", payload)
        return cls(service=service, port=port)


@dataclass(frozen=True)
class SignalInfo:
    """Parsed StateHostInfo (13) or StateWifiInfo (17) reply."""

    SIZE: ClassVar[int] = 14

    signal: float
    tx: int
    rx: int

    @classmethod
    def from_bytes(cls, payload: bytes) -> SignalInfo:
        _require(payload, cls.SIZE, "SignalInfo")
        signal, tx, rx = struct.unpack_from("<fII", payload)
        return cls(signal=signal, tx=tx, rx=rx)


@dataclass(frozen=True)
class VersionInfo:
    """Parsed StateVersion (33) reply."""

    SIZE: ClassVar[int] = 12

    vendor_id: int
    product_id: int
    version: int

    @classmethod
    def from_bytes(cls, payload: bytes) -> VersionInfo:
        _require(payload, cls.SIZE, "VersionInfo")
        vendor_id, product_id, version = struct.unpack_from("<III", payload)
        return cls(vendor_id=vendor_id, product_id=product_id, version=version)


@dataclass(frozen=True)
class FirmwareInfo:
    """Parsed StateHostFirmware (15) or StateWifiFirmware (19) reply.

    Layout: u64 build timestamp, 8 reserved bytes, u32 version.
    """

    SIZE: ClassVar[int] = 20

    build: int
    version: int

    @classmethod
    def from_bytes(cls, payload: bytes) -> FirmwareInfo:
        _require(payload, cls.SIZE, "FirmwareInfo")
        build, _, version = struct.unpack_from("<Q8sI", payload)
        return cls(build=build, version=version)


@dataclass(frozen=True)
class StateInfo:
    """Parsed StateInfo (35) reply. All fields are nanoseconds."""

    SIZE: ClassVar[int] = 24

    time: int
    uptime: int
    downtime: int

    @classmethod
    def from_bytes(cls, payload: bytes) -> StateInfo:
        _require(payload, cls.SIZE, "StateInfo")
        time, uptime, downtime = struct.unpack_from("<QQQ", payload)
        return cls(time=time, uptime=uptime, downtime=downtime)


@dataclass(frozen=True)
class GroupInfo:
    """Parsed StateLocation (50) or StateGroup (53) reply.

    Layout: 16-byte id, 32-byte label, u64 updated_at (nanoseconds).
    """

    SIZE: ClassVar[int] = 56

    location_id: bytes
    label: str
    updated_at: int

    @classmethod
    def from_bytes(cls, payload: bytes) -> GroupInfo:
        _require(payload, cls.SIZE, "GroupInfo")
        location_id, label, updated_at = struct.unpack_from("<16s32sQ", payload)
        return cls(
            location_id=location_id,
            label=unpack_string(label),
            updated_at=updated_at,
        )


@dataclass(frozen=True)
class HSBK:
    """Hue, saturation, brightness and kelvin, each a u16."""

    SIZE: ClassVar[int] = 8

    hue: int = 0
    saturation: int = 0
    brightness: int = 0
    kelvin: int = 3500

    def __post_init__(self) -> None:
        for name in ("hue", "saturation", "brightness", "kelvin"):
            value = getattr(self, name)
            if not 0 <= value <= 0xFFFF:
                raise ValueError(f"{name} must be 0-65535, got {value}")

    def to_bytes(self) -> bytes:
        return struct.pack(
            "<HHHH", self.hue, self.saturation, self.brightness, self.kelvin
        )

    @classmethod
    def from_bytes(cls, payload: bytes) -> HSBK:
        _require(payload, cls.SIZE, "HSBK")
        hue, saturation, brightness, kelvin = struct.unpack_from("<HHHH", payload)
        return cls(
            hue=hue, saturation=saturation, brightness=brightness, kelvin=kelvin
        )

    def to_dict(self) -> dict:
        return {
            "hue": self.hue,
            "saturation": self.saturation,
            "brightness": self.brightness,
            "kelvin": self.kelvin,
        }


@dataclass(frozen=True)
class LightState:
    """Parsed LightState (107) reply.

    Layout: HSBK (8), reserved (2), u16 power, 32-byte label, reserved (8).
    """

    SIZE: ClassVar[int] = 52

    color: HSBK
    power: bool
    label: str

    @classmethod
    def from_bytes(cls, payload: bytes) -> LightState:
        _require(payload, cls.SIZE, "LightState")
        power, label = struct.unpack_from("<H32s", payload, 10)
        return cls(
            color=HSBK.from_bytes(payload[:8]),
            power=power != 0,
            label=unpack_string(label),
        )


@dataclass(frozen=True)
class PowerLevel:
    """Parsed StatePower (22) or StatePowerDuration (118) reply."""

    SIZE: ClassVar[int] = 2

    on: bool

    @classmethod
    def from_bytes(cls, payload: bytes) -> PowerLevel:
        _require(payload, cls.SIZE, "PowerLevel")
        (level,) = struct.unpack_from("<H", payload)
        return cls(on=level != 0)


@dataclass(frozen=True)
class Label:
    """Parsed StateLabel (25) reply."""

    SIZE: ClassVar[int] = LABEL_SIZE

    label: str

    @classmethod
    def from_bytes(cls, payload: bytes) -> Label:
        _require(payload, cls.SIZE, "Label")
        return cls(label=unpack_string(payload[: cls.SIZE]))


@dataclass(frozen=True)
class EchoPayload:
    """Parsed EchoResponse (59) reply."""

    SIZE: ClassVar[int] = ECHO_SIZE

    payload: bytes

    @classmethod
    def from_bytes(cls, payload: bytes) -> EchoPayload:
        _require(payload, cls.SIZE, "EchoPayload")
        return cls(payload=bytes(payload[: cls.SIZE]))


PAYLOAD_DECODERS: dict[MessageType, type] = {
    MessageType.STATE_SERVICE: StateService,
    MessageType.STATE_HOST_INFO: SignalInfo,
    MessageType.STATE_WIFI_INFO: SignalInfo,
    MessageType.STATE_HOST_FIRMWARE: FirmwareInfo,
    MessageType.STATE_WIFI_FIRMWARE: FirmwareInfo,
    MessageType.STATE_POWER: PowerLevel,
    MessageType.STATE_LABEL: Label,
    MessageType.STATE_VERSION: VersionInfo,
    MessageType.STATE_INFO: StateInfo,
    MessageType.STATE_LOCATION: GroupInfo,
    MessageType.STATE_GROUP: GroupInfo,
    MessageType.ECHO_RESPONSE: EchoPayload,
    MessageType.STATE_COLOR: LightState,
    MessageType.STATE_POWER_DURATION: PowerLevel,
}


def decode_payload(message_type: int, payload: bytes):
    """Decode ``payload`` with the record registered for ``message_type``.

    Returns the raw payload bytes for message types without a decoder.

    Raises:
        MalformedFrameError: If the payload is shorter than the layout.
    """
    try:
        decoder = PAYLOAD_DECODERS[MessageType(message_type)]
    except (KeyError, ValueError):
        return payload
    return decoder.from_bytes(payload)


def parse_payload(frame: Frame):
    """Decode a reply frame into its typed record."""
    return decode_payload(frame.message_type, frame.payload)
