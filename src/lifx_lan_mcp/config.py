"""Network settings shared by discovery and the request dispatcher."""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_BROADCAST_ADDRESS = "255.255.255.255"
DEFAULT_PORT = 56700
DEFAULT_TIMEOUT = 0.5
DEFAULT_SOURCE = 7

_BROADCAST_ENV = "LIFX_BROADCAST_ADDRESS"
_PORT_ENV = "LIFX_PORT"
_TIMEOUT_ENV = "LIFX_TIMEOUT"
_LOG_LEVEL_ENV = "LIFX_LOG_LEVEL"


@dataclass(frozen=True)
class LanConfig:
    """Immutable snapshot of the LAN settings.

    A request captures the snapshot once, so replacing the client's
    config never changes the address of a call that is already running.
    """

    broadcast_address: str = DEFAULT_BROADCAST_ADDRESS
    port: int = DEFAULT_PORT
    timeout: float = DEFAULT_TIMEOUT
    source: int = DEFAULT_SOURCE
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not 0 < self.port <= 0xFFFF:
            raise ValueError(f"Port must be 1-65535, got {self.port}")
        if not math.isfinite(self.timeout) or self.timeout <= 0:
            raise ValueError(f"Timeout must be positive, got {self.timeout}")
        if not 0 <= self.source <= 0xFFFFFFFF:
            raise ValueError(f"Source must fit in 32 bits, got {self.source}")

    @classmethod
    def from_env(cls) -> LanConfig:
        """Build a config from ``LIFX_*`` environment variables."""
        return cls(
            broadcast_address=os.getenv(_BROADCAST_ENV) or DEFAULT_BROADCAST_ADDRESS,
            port=_env_number(_PORT_ENV, int, DEFAULT_PORT),
            timeout=_env_number(_TIMEOUT_ENV, float, DEFAULT_TIMEOUT),
            log_level=(os.getenv(_LOG_LEVEL_ENV) or "INFO").upper(),
        )


def _env_number(name: str, kind: type, default):
    value = os.getenv(name)
    if not value:
        return default
    try:
        number = kind(value)
    except ValueError:
        logger.warning("Invalid %s=%s; using default %s", name, value, default)
        return default
    if not math.isfinite(number) or number <= 0:
        logger.warning("Invalid %s=%s; using default %s", name, value, default)
        return default
    return number
