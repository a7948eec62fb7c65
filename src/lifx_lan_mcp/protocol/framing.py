"""Frame encoder and decoder for the 36-byte LIFX LAN header.

Frame layout (little-endian)::

    +--------+-------+-------+--------+--------+----------+-------+-----+----------+------+----------+---------+
    | Size   | Rsvd  | Flags | Source | Target | Reserved | Flags | Seq | Reserved | Type | Reserved | Payload |
    | 2 bytes| 1 byte| 1 byte| 4 bytes| 8 bytes| 6 bytes  | 1 byte|1 B  | 8 bytes  | 2 B  | 2 bytes  | var     |
    +--------+-------+-------+--------+--------+----------+-------+-----+----------+------+----------+---------+

- Size: total frame length, header included
- Flags (byte 3): bit 5 tagged, bit 4 addressable, bit 2 always set
- Target: device hardware id (MAC in the low 48 bits), 0 for broadcast
- Flags (byte 22): bit 1 ack_required, bit 0 res_required
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from ..errors import MalformedFrameError

HEADER_SIZE = 36
MAX_FRAME_SIZE = 512
MAX_PAYLOAD_SIZE = MAX_FRAME_SIZE - HEADER_SIZE
DEFAULT_SOURCE = 7

_HEADER = struct.Struct("<HBBIQ6sBB8sH2s")

_TAGGED_BIT = 1 << 5
_ADDRESSABLE_BIT = 1 << 4
_PROTOCOL_MARKER = 1 << 2
_ACK_BIT = 1 << 1
_RES_BIT = 1 << 0


@dataclass
class Frame:
    """A single protocol message.

    ``address`` is the ``(host, port)`` of the sender for frames read off
    the wire and ``None`` for frames built locally; it is not encoded.
    """

    message_type: int
    payload: bytes = b""
    target: int = 0
    source: int = DEFAULT_SOURCE
    tagged: bool = False
    addressable: bool = True
    ack_required: bool = False
    res_required: bool = False
    sequence: int = 0
    address: tuple[str, int] | None = None

    def __repr__(self) -> str:
        return (
            f"Frame(type={self.message_type}, target=0x{self.target:016X}, "
            f"payload={self.payload.hex(' ') if self.payload else '(empty)'})"
        )


def encode_frame(frame: Frame) -> bytes:
    """Encode a Frame into a datagram of ``36 + len(payload)`` bytes.

    Raises:
        ValueError: If the payload does not fit in a 512-byte frame.
    """
    if len(frame.payload) > MAX_PAYLOAD_SIZE:
        raise ValueError(
            f"Payload must be at most {MAX_PAYLOAD_SIZE} bytes, "
            f"got {len(frame.payload)}"
        )
    flags = _PROTOCOL_MARKER
    if frame.tagged:
        flags |= _TAGGED_BIT
    if frame.addressable:
        flags |= _ADDRESSABLE_BIT
    response_flags = 0
    if frame.ack_required:
        response_flags |= _ACK_BIT
    if frame.res_required:
        response_flags |= _RES_BIT

    header = _HEADER.pack(
        HEADER_SIZE + len(frame.payload),
        0,
        flags,
        frame.source & 0xFFFFFFFF,
        frame.target & 0xFFFFFFFFFFFFFFFF,
        b"",
        response_flags,
        frame.sequence & 0xFF,
        b"",
        frame.message_type & 0xFFFF,
        b"",
    )
    return header + bytes(frame.payload)


def decode_frame(data: bytes, address: tuple[str, int] | None = None) -> Frame:
    """Decode a datagram into a Frame.

    The payload ends at the declared frame size when that size is
    consistent with the datagram, otherwise it runs to the end of ``data``.

    Raises:
        MalformedFrameError: If ``data`` is shorter than the header.
    """
    if len(data) < HEADER_SIZE:
        raise MalformedFrameError(
            f"Frame must be at least {HEADER_SIZE} bytes, got {len(data)}"
        )

    (
        size, _, flags, source, target, _, response_flags, sequence, _,
        message_type, _,
    ) = _HEADER.unpack_from(data)

    end = size if HEADER_SIZE <= size <= len(data) else len(data)

    return Frame(
        message_type=message_type,
        payload=bytes(data[HEADER_SIZE:end]),
        target=target,
        source=source,
        tagged=bool(flags & _TAGGED_BIT),
        addressable=bool(flags & _ADDRESSABLE_BIT),
        ack_required=bool(response_flags & _ACK_BIT),
        res_required=bool(response_flags & _RES_BIT),
        sequence=sequence,
        address=address,
    )


def pack_string(text: str, width: int) -> bytes:
    """Encode ``text`` as a fixed-width NUL-padded field, truncating if needed.

    Truncation never splits a multi-byte UTF-8 character.
    """
    raw = text.encode("utf-8")[:width]
    raw = raw.decode("utf-8", errors="ignore").encode("utf-8")
    return raw.ljust(width, b"\x00")


def unpack_string(data: bytes) -> str:
    """Decode a fixed-width string field, dropping NUL and space padding."""
    return bytes(data).rstrip(b"\x00 ").decode("utf-8", errors="replace")
