"""Broadcast discovery of bulbs on the local network."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..errors import MalformedFrameError
from ..protocol.messages import SERVICE_UDP, MessageType
from ..protocol.parser import StateService
from .dispatcher import Dispatcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeviceDescriptor:
    """A device that answered discovery."""

    hardware_address: int
    ip_address: str
    port: int

    @property
    def mac_address(self) -> str:
        """Hardware address as ``aa:bb:cc:dd:ee:ff`` (low 48 bits, wire order)."""
        raw = self.hardware_address.to_bytes(8, "little")[:6]
        return ":".join(f"{b:02x}" for b in raw)


def discover(dispatcher: Dispatcher, timeout: float | None = None) -> list[DeviceDescriptor]:
    """Broadcast GetService and describe every device advertising UDP.

    Replies keep their arrival order. A device that answers more than
    once appears more than once.
    """
    replies = dispatcher.broadcast(MessageType.GET_SERVICE, timeout=timeout)

    devices: list[DeviceDescriptor] = []
    for reply in replies:
        if reply.message_type != MessageType.STATE_SERVICE or reply.address is None:
            continue
        try:
            service = StateService.from_bytes(reply.payload)
        except MalformedFrameError:
            continue
        if service.service != SERVICE_UDP:
            continue
        devices.append(
            DeviceDescriptor(
                hardware_address=reply.target,
                ip_address=reply.address[0],
                port=service.port,
            )
        )

    logger.info("Discovered %d device(s) from %d replies", len(devices), len(replies))
    return devices
