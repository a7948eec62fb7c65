"""Request dispatcher: builds request frames and matches device replies.

Devices are addressed by the frame's target id, never by IP, so every
request goes to the configured broadcast address and the reply is picked
out of whatever arrives by comparing targets.
"""

from __future__ import annotations

import logging

from ..config import LanConfig
from ..errors import (
    NoAcknowledgementError,
    NoResponseError,
    UnexpectedReplyTypeError,
)
from ..protocol.framing import Frame
from ..protocol.messages import MessageType
from .udp_connection import UDPConnection

logger = logging.getLogger(__name__)


class Dispatcher:
    """Sends requests through a UDPConnection and validates the replies."""

    def __init__(
        self,
        config: LanConfig | None = None,
        connection: UDPConnection | None = None,
    ) -> None:
        self.config = config or LanConfig()
        self._connection = connection or UDPConnection(port=self.config.port)

    def _exchange(
        self,
        frame: Frame,
        config: LanConfig,
        timeout: float | None,
        until=None,
    ) -> list[Frame]:
        window = config.timeout if timeout is None else timeout
        return self._connection.exchange(
            frame,
            config.broadcast_address,
            window,
            until=until,
            port=config.port,
        )

    def request(
        self,
        message_type: int,
        target: int,
        expected_reply: int,
        payload: bytes = b"",
        timeout: float | None = None,
        res_required: bool = False,
    ) -> Frame:
        """Send a request to one device and return its reply.

        The first reply (in arrival order) whose target equals ``target``
        is selected; collection stops as soon as it arrives.

        Raises:
            NoResponseError: If no reply from ``target`` arrived in time.
            UnexpectedReplyTypeError: If the reply is not ``expected_reply``.
        """
        reply = self._request(
            Frame(
                message_type=message_type,
                payload=payload,
                target=target,
                res_required=res_required,
            ),
            timeout,
        )
        if reply.message_type != expected_reply:
            logger.warning(
                "Device 0x%016X answered type %d to %d, expected %d",
                target, reply.message_type, message_type, expected_reply,
            )
            raise UnexpectedReplyTypeError(expected_reply, reply.message_type)
        return reply

    def request_with_ack(
        self,
        message_type: int,
        target: int,
        payload: bytes = b"",
        timeout: float | None = None,
    ) -> None:
        """Send a state-changing request and require an Acknowledgement.

        Raises:
            NoAcknowledgementError: If no reply arrived or the reply is not
                an Acknowledgement.
        """
        frame = Frame(
            message_type=message_type,
            payload=payload,
            target=target,
            ack_required=True,
        )
        try:
            reply = self._request(frame, timeout)
        except NoResponseError as e:
            raise NoAcknowledgementError(target) from e
        if reply.message_type != MessageType.ACKNOWLEDGEMENT:
            raise NoAcknowledgementError(target)

    def broadcast(
        self,
        message_type: int,
        payload: bytes = b"",
        timeout: float | None = None,
    ) -> list[Frame]:
        """Send a tagged broadcast and return every reply in the window."""
        config = self.config
        frame = Frame(
            message_type=message_type,
            payload=payload,
            tagged=True,
            source=config.source,
        )
        return self._exchange(frame, config, timeout)

    def _request(self, frame: Frame, timeout: float | None) -> Frame:
        config = self.config
        frame.source = config.source
        target = frame.target

        replies = self._exchange(
            frame, config, timeout, until=lambda reply: reply.target == target
        )
        for reply in replies:
            if reply.target == target:
                return reply
        raise NoResponseError(target)
