"""Bulb device proxy: one method per protocol command plus a state cache."""

from __future__ import annotations

from datetime import datetime, timezone

from ..client import LanClient
from ..protocol.messages import (
    REPLY_TYPES,
    MessageType,
    build_echo_request,
    build_set_color,
    build_set_label,
    build_set_power,
    build_set_power_duration,
)
from ..protocol.parser import (
    FirmwareInfo,
    GroupInfo,
    HSBK,
    Label,
    LightState,
    SignalInfo,
    StateInfo,
    VersionInfo,
    decode_payload,
)
from ..transport.discovery import DeviceDescriptor

# Acknowledged commands wait this long regardless of the read timeout
_ACK_TIMEOUT = 0.5


def format_timestamp(nanoseconds: int) -> str:
    """Render a nanosecond epoch timestamp as ``YYYY-MM-DD HH:MM:SS`` UTC."""
    moment = datetime.fromtimestamp(nanoseconds // 1_000_000_000, tz=timezone.utc)
    return moment.strftime("%Y-%m-%d %H:%M:%S")


class Bulb:
    """A single bulb found by discovery.

    Getters query the device and cache the result; setters update the
    cache only once the device has acknowledged the change.
    """

    def __init__(self, descriptor: DeviceDescriptor, client: LanClient) -> None:
        self._descriptor = descriptor
        self._client = client
        self.label: str = ""
        self.power: bool = False
        self.host_info: SignalInfo | None = None
        self.wifi_info: SignalInfo | None = None
        self.version: VersionInfo | None = None
        self.host_firmware: FirmwareInfo | None = None
        self.wifi_firmware: FirmwareInfo | None = None
        self.info: StateInfo | None = None
        self.location: GroupInfo | None = None
        self.group: GroupInfo | None = None
        self.color: HSBK | None = None

    @property
    def hardware_address(self) -> int:
        return self._descriptor.hardware_address

    @property
    def mac_address(self) -> str:
        return self._descriptor.mac_address

    @property
    def ip_address(self) -> str:
        return self._descriptor.ip_address

    @property
    def port(self) -> int:
        return self._descriptor.port

    def _get(self, request: MessageType, payload: bytes = b"", **kwargs):
        """Send ``request`` and decode the reply it is registered to produce."""
        reply = REPLY_TYPES[request]
        raw = self._client.request(
            self.hardware_address, request, payload, reply, **kwargs
        )
        return decode_payload(reply, raw)

    def _set(self, request: MessageType, payload: bytes) -> None:
        self._client.request_with_ack(
            self.hardware_address, request, payload, timeout=_ACK_TIMEOUT
        )

    # ─── POWER / LABEL ──────────────────────────────────────────────

    def get_power(self) -> bool:
        self.power = self._get(MessageType.GET_POWER).on
        return self.power

    def set_power(self, on: bool) -> None:
        self._set(MessageType.SET_POWER, build_set_power(on))
        self.power = on

    def get_label(self) -> str:
        self.label = self._get(MessageType.GET_LABEL).label
        return self.label

    def set_label(self, label: str) -> None:
        """Rename the bulb. Labels over 32 bytes are truncated."""
        payload = build_set_label(label)
        self._set(MessageType.SET_LABEL, payload)
        self.label = Label.from_bytes(payload).label

    # ─── DIAGNOSTICS ────────────────────────────────────────────────

    def get_host_info(self) -> SignalInfo:
        self.host_info = self._get(MessageType.GET_HOST_INFO)
        return self.host_info

    def get_wifi_info(self) -> SignalInfo:
        self.wifi_info = self._get(MessageType.GET_WIFI_INFO)
        return self.wifi_info

    def get_version(self) -> VersionInfo:
        self.version = self._get(MessageType.GET_VERSION)
        return self.version

    def get_host_firmware(self) -> FirmwareInfo:
        self.host_firmware = self._get(MessageType.GET_HOST_FIRMWARE)
        return self.host_firmware

    def get_wifi_firmware(self) -> FirmwareInfo:
        self.wifi_firmware = self._get(MessageType.GET_WIFI_FIRMWARE)
        return self.wifi_firmware

    def get_info(self) -> StateInfo:
        self.info = self._get(MessageType.GET_INFO)
        return self.info

    def get_location(self) -> GroupInfo:
        self.location = self._get(MessageType.GET_LOCATION)
        return self.location

    def get_group(self) -> GroupInfo:
        self.group = self._get(MessageType.GET_GROUP)
        return self.group

    def echo(self, data: bytes) -> bytes:
        """Send an EchoRequest and return the echoed bytes.

        The reply is trimmed to the length of ``data``.

        Raises:
            ValueError: If ``data`` is longer than 64 bytes.
        """
        reply = self._get(MessageType.ECHO_REQUEST, build_echo_request(data))
        return reply.payload[: len(data)]

    # ─── LIGHT ──────────────────────────────────────────────────────

    def get_power_duration(self) -> bool:
        self.power = self._get(MessageType.GET_POWER_DURATION).on
        return self.power

    def set_power_duration(self, on: bool, duration_ms: int = 0) -> None:
        self._set(
            MessageType.SET_POWER_DURATION,
            build_set_power_duration(on, duration_ms),
        )
        self.power = on

    def get_color_state(self) -> LightState:
        return self._apply_state(self._get(MessageType.GET_COLOR))

    def set_color(self, color: HSBK, duration_ms: int = 0) -> None:
        self._set(MessageType.SET_COLOR, build_set_color(color, duration_ms))
        self.color = color

    def set_color_with_response(self, color: HSBK, duration_ms: int = 0) -> LightState:
        """Change the color and return the state the bulb reports back."""
        state = self._get(
            MessageType.SET_COLOR,
            build_set_color(color, duration_ms),
            res_required=True,
        )
        return self._apply_state(state)

    def _apply_state(self, state: LightState) -> LightState:
        self.power = state.power
        self.label = state.label
        self.color = state.color
        return state

    # ─── EXPORT ─────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        """Convert the cached bulb state to a JSON-serializable dictionary."""
        result: dict = {
            "mac": self.mac_address,
            "ip": self.ip_address,
            "port": self.port,
            "label": self.label,
            "power_state": self.power,
        }
        for key, signal in (("host_info", self.host_info), ("wifi_info", self.wifi_info)):
            if signal is not None:
                result[key] = {"signal": signal.signal, "tx": signal.tx, "rx": signal.rx}
        if self.version is not None:
            result["version"] = {
                "vendor_id": self.version.vendor_id,
                "product_id": self.version.product_id,
                "version": self.version.version,
            }
        for key, firmware in (
            ("host_firmware", self.host_firmware),
            ("wifi_firmware", self.wifi_firmware),
        ):
            if firmware is not None:
                result[key] = {"build": firmware.build, "version": firmware.version}
        if self.info is not None:
            result["info"] = {
                "time": format_timestamp(self.info.time),
                "uptime": self.info.uptime / 1e9,
                "downtime": self.info.downtime / 1e9,
            }
        for key, group in (("location", self.location), ("group", self.group)):
            if group is not None:
                result[key] = {
                    "label": group.label,
                    "updated_at": format_timestamp(group.updated_at),
                }
        if self.color is not None:
            result["color"] = self.color.to_dict()
        return result

    def __str__(self) -> str:
        lines = [f"MAC: {self.mac_address}", f"IP: {self.ip_address}"]
        if self.label:
            lines.append(f"Label: {self.label}")
        lines.append(f"Power state: {self.power}")
        for title, signal in (("Host info", self.host_info), ("Wi-Fi info", self.wifi_info)):
            if signal is not None:
                lines += [
                    f"{title}:",
                    f"  Signal: {signal.signal:f}",
                    f"  Rx: {signal.rx}",
                    f"  Tx: {signal.tx}",
                ]
        if self.version is not None:
            lines += [
                "Version:",
                f"  Vendor id: {self.version.vendor_id}",
                f"  Product id: {self.version.product_id}",
                f"  Version: {self.version.version}",
            ]
        for title, firmware in (
            ("Host firmware", self.host_firmware),
            ("Wi-Fi firmware", self.wifi_firmware),
        ):
            if firmware is not None:
                lines += [
                    f"{title}:",
                    f"  Build: {firmware.build}",
                    f"  Version: {firmware.version}",
                ]
        if self.info is not None:
            lines += [
                "Info:",
                f"  Time: {format_timestamp(self.info.time)}",
                f"  Uptime: {self.info.uptime / 1e9:.0f}s",
                f"  Downtime: {self.info.downtime / 1e9:.0f}s",
            ]
        for title, group in (("Location", self.location), ("Group", self.group)):
            if group is not None:
                lines += [
                    f"{title}:",
                    f"  Label: {group.label}",
                    f"  Updated at: {format_timestamp(group.updated_at)}",
                ]
        if self.color is not None:
            lines += [
                "Color:",
                f"  Hue: {self.color.hue}",
                f"  Saturation: {self.color.saturation}",
                f"  Brightness: {self.color.brightness}",
                f"  Kelvin: {self.color.kelvin}",
            ]
        return "\n".join(lines) + "\n"

    def __repr__(self) -> str:
        return f"Bulb(mac={self.mac_address!r}, ip={self.ip_address!r})"
