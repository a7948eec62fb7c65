"""Exceptions raised by the protocol core."""

from __future__ import annotations


class LifxError(Exception):
    """Base error for LIFX LAN operations."""


class TransportError(LifxError):
    """A socket could not be created, written or read (other than a timeout)."""


class MalformedFrameError(LifxError, ValueError):
    """A datagram or payload is shorter than its fixed layout requires."""


class NoResponseError(LifxError):
    """No frame from the requested device arrived before the deadline."""

    def __init__(self, target: int) -> None:
        super().__init__(f"No response from device 0x{target:016X}")
        self.target = target


class UnexpectedReplyTypeError(LifxError):
    """The device answered with a different message type than expected."""

    def __init__(self, expected: int, received: int) -> None:
        super().__init__(
            f"Incorrect response type: expected {expected}, got {received}"
        )
        self.expected = expected
        self.received = received


class NoAcknowledgementError(LifxError):
    """An acknowledged command was not confirmed by the device."""

    def __init__(self, target: int) -> None:
        super().__init__(f"No acknowledgement from device 0x{target:016X}")
        self.target = target
