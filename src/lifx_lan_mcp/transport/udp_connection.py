"""UDP transport for the LIFX LAN protocol.

Every exchange opens its own ephemeral socket, sends one datagram and
collects replies until a wall-clock deadline passes. No socket outlives
a call, so concurrent exchanges never see each other's replies.
"""

from __future__ import annotations

import logging
import socket
import time
from typing import Callable

from ..errors import MalformedFrameError, TransportError
from ..protocol.framing import Frame, MAX_FRAME_SIZE, decode_frame, encode_frame

logger = logging.getLogger(__name__)

DEFAULT_PORT = 56700


class UDPConnection:
    """Sends a frame and gathers the replies that arrive before a deadline.

    Usage::

        conn = UDPConnection()
        replies = conn.exchange(frame, "255.255.255.255", timeout=0.5)
    """

    def __init__(
        self,
        port: int = DEFAULT_PORT,
        bind_host: str = "",
        buffer_size: int = MAX_FRAME_SIZE,
    ) -> None:
        self._port = port
        self._bind_host = bind_host
        self._buffer_size = buffer_size

    def exchange(
        self,
        frame: Frame,
        host: str,
        timeout: float,
        until: Callable[[Frame], bool] | None = None,
        port: int | None = None,
    ) -> list[Frame]:
        """Send ``frame`` to ``host`` and collect replies for ``timeout`` seconds.

        Reaching the deadline is the normal end of collection. Datagrams that
        do not decode are dropped.

        Args:
            frame: Frame to send.
            host: Destination IPv4 address (broadcast or unicast).
            timeout: Collection window in seconds, measured from the send.
            until: Optional predicate; collection stops right after the
                first reply for which it returns True.
            port: Destination port; defaults to the port given at construction.

        Returns:
            Decoded replies in arrival order, each with its sender address.

        Raises:
            TransportError: If the socket cannot be created, written or read.
        """
        port = self._port if port is None else port
        data = encode_frame(frame)
        replies: list[Frame] = []

        try:
            with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
                sock.bind((self._bind_host, 0))
                sock.sendto(data, (host, port))
                deadline = time.monotonic() + timeout
                logger.debug(
                    "Sent type %d to %s:%d (%d bytes)",
                    frame.message_type, host, port, len(data),
                )

                while True:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        break
                    sock.settimeout(remaining)
                    try:
                        datagram, address = sock.recvfrom(self._buffer_size)
                    except socket.timeout:
                        break

                    try:
                        reply = decode_frame(datagram, address[:2])
                    except MalformedFrameError as e:
                        logger.debug("Dropped datagram from %s: %s", address, e)
                        continue

                    logger.debug("Received %r from %s", reply, address)
                    replies.append(reply)
                    if until is not None and until(reply):
                        break
        except OSError as e:
            raise TransportError(
                f"UDP exchange with {host}:{port} failed: {e}"
            ) from e

        return replies
