"""Client facade used by device proxies and the MCP server."""

from __future__ import annotations

import dataclasses

from .config import LanConfig
from .transport.discovery import DeviceDescriptor, discover
from .transport.dispatcher import Dispatcher
from .transport.udp_connection import UDPConnection


class LanClient:
    """Discovery plus per-device requests over one immutable config snapshot.

    ``set_broadcast_address`` swaps in a new snapshot for the next call.
    A call that is already running keeps the address it started with;
    changing the address from another thread mid-call is the caller's race.
    """

    def __init__(
        self,
        config: LanConfig | None = None,
        connection: UDPConnection | None = None,
    ) -> None:
        config = config or LanConfig()
        self._dispatcher = Dispatcher(
            config, connection or UDPConnection(port=config.port)
        )

    @property
    def config(self) -> LanConfig:
        return self._dispatcher.config

    @property
    def broadcast_address(self) -> str:
        return self.config.broadcast_address

    def set_broadcast_address(self, host: str) -> None:
        """Send future requests to ``host`` instead of the current address."""
        self._dispatcher.config = dataclasses.replace(
            self.config, broadcast_address=host
        )

    def discover(self, timeout: float | None = None) -> list[DeviceDescriptor]:
        return discover(self._dispatcher, timeout=timeout)

    def request(
        self,
        device_id: int,
        message_type: int,
        payload: bytes,
        expected_reply: int,
        timeout: float | None = None,
        res_required: bool = False,
    ) -> bytes:
        """Send a request to ``device_id`` and return the reply payload."""
        reply = self._dispatcher.request(
            message_type,
            device_id,
            expected_reply,
            payload=payload,
            timeout=timeout,
            res_required=res_required,
        )
        return reply.payload

    def request_with_ack(
        self,
        device_id: int,
        message_type: int,
        payload: bytes = b"",
        timeout: float | None = None,
    ) -> None:
        self._dispatcher.request_with_ack(
            message_type, device_id, payload=payload, timeout=timeout
        )
