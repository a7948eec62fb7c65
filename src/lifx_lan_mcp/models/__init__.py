"""Device models built on the protocol core."""

from .bulb import Bulb
