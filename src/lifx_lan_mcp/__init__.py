"""LIFX LAN MCP package.

Discovers and controls LIFX bulbs over the LAN binary UDP protocol and
exposes them through a Model Context Protocol server.
"""

__version__ = "0.1.0"
