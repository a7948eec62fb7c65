"""Transport layer: UDP exchange, request dispatch and discovery."""

from .udp_connection import UDPConnection
from .dispatcher import Dispatcher
from .discovery import DeviceDescriptor, discover
