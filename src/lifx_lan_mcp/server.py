"""MCP server entry point for LIFX bulbs on the local network.

Exposes discovery and bulb control as tools, resources, and prompts via
the Model Context Protocol using the official Python MCP SDK with stdio
transport.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .client import LanClient
from .config import LanConfig
from .errors import LifxError
from .models.bulb import Bulb
from .protocol.parser import HSBK

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "lifx-lan",
    instructions="MCP server for LIFX bulbs over the LAN UDP protocol",
)

# Global client state
_client: LanClient | None = None
_bulbs: dict[str, Bulb] = {}


def _get_client() -> LanClient:
    """Get the shared LAN client, creating it from the environment."""
    global _client
    if _client is None:
        _client = LanClient(LanConfig.from_env())
    return _client


def _get_bulb(mac: str) -> Bulb:
    """Look up a discovered bulb by MAC address."""
    bulb = _bulbs.get(mac.lower())
    if bulb is None:
        raise LookupError(
            f"Unknown bulb '{mac}'. Use the 'discover_bulbs' tool first."
        )
    return bulb


# ─── DISCOVERY TOOLS ──────────────────────────────────────────────────

@mcp.tool()
def discover_bulbs(timeout: float = 1.0) -> dict[str, Any]:
    """Broadcast a discovery request and list the bulbs that answer.

    Args:
        timeout: Seconds to wait for replies (default 1.0).
    """
    if timeout <= 0:
        return {"error": "Timeout must be positive"}

    client = _get_client()
    try:
        devices = client.discover(timeout=timeout)
    except LifxError as e:
        return {"error": str(e)}

    bulbs = []
    for device in devices:
        bulb = _bulbs.get(device.mac_address)
        if bulb is None or bulb.ip_address != device.ip_address:
            _bulbs[device.mac_address] = Bulb(device, client)
        bulbs.append({
            "mac": device.mac_address,
            "ip": device.ip_address,
            "port": device.port,
        })

    return {"bulbs": bulbs, "count": len(bulbs)}


@mcp.tool()
def set_broadcast_address(address: str) -> dict[str, Any]:
    """Change the IPv4 address requests are sent to.

    Args:
        address: Broadcast (e.g. 192.168.1.255) or unicast address.
    """
    client = _get_client()
    client.set_broadcast_address(address)
    return {"broadcast_address": client.broadcast_address}


# ─── BULB STATE TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def get_bulb(mac: str) -> dict[str, Any]:
    """Return the cached state of a discovered bulb.

    Args:
        mac: Bulb MAC address as returned by discover_bulbs.
    """
    try:
        return _get_bulb(mac).to_dict()
    except LookupError as e:
        return {"error": str(e)}


@mcp.tool()
def refresh_bulb(mac: str) -> dict[str, Any]:
    """Query a bulb for its color, label, versions, firmware and diagnostics.

    Args:
        mac: Bulb MAC address.
    """
    try:
        bulb = _get_bulb(mac)
        bulb.get_color_state()
        bulb.get_version()
        bulb.get_host_firmware()
        bulb.get_wifi_firmware()
        bulb.get_host_info()
        bulb.get_wifi_info()
        bulb.get_info()
        bulb.get_location()
        bulb.get_group()
    except (LookupError, LifxError) as e:
        return {"error": str(e)}
    return bulb.to_dict()


@mcp.tool()
def get_color(mac: str) -> dict[str, Any]:
    """Read the current color, power and label of a bulb.

    Args:
        mac: Bulb MAC address.
    """
    try:
        state = _get_bulb(mac).get_color_state()
    except (LookupError, LifxError) as e:
        return {"error": str(e)}
    return {"color": state.color.to_dict(), "power": state.power, "label": state.label}


# ─── CONTROL TOOLS ────────────────────────────────────────────────────

@mcp.tool()
def set_power(mac: str, on: bool, duration_ms: int = 0) -> dict[str, Any]:
    """Turn a bulb on or off.

    Args:
        mac: Bulb MAC address.
        on: True to turn on, False to turn off.
        duration_ms: Optional fade time in milliseconds.
    """
    try:
        bulb = _get_bulb(mac)
        if duration_ms:
            bulb.set_power_duration(on, duration_ms)
        else:
            bulb.set_power(on)
    except (LookupError, LifxError, ValueError) as e:
        return {"error": str(e)}
    return {"mac": bulb.mac_address, "power": on}


@mcp.tool()
def set_label(mac: str, label: str) -> dict[str, Any]:
    """Rename a bulb.

    Args:
        mac: Bulb MAC address.
        label: New label (max 32 bytes, longer labels are truncated).
    """
    try:
        bulb = _get_bulb(mac)
        bulb.set_label(label)
    except (LookupError, LifxError) as e:
        return {"error": str(e)}
    return {"mac": bulb.mac_address, "label": bulb.label}


@mcp.tool()
def set_color(
    mac: str,
    hue: int,
    saturation: int,
    brightness: int,
    kelvin: int = 3500,
    duration_ms: int = 0,
) -> dict[str, Any]:
    """Change the color of a bulb.

    Args:
        mac: Bulb MAC address.
        hue: Hue (0-65535, maps to 0-360 degrees).
        saturation: Saturation (0-65535).
        brightness: Brightness (0-65535).
        kelvin: White temperature (2500-9000 on most bulbs).
        duration_ms: Transition time in milliseconds.
    """
    try:
        color = HSBK(hue=hue, saturation=saturation, brightness=brightness, kelvin=kelvin)
        bulb = _get_bulb(mac)
        bulb.set_color(color, duration_ms)
    except (LookupError, LifxError, ValueError) as e:
        return {"error": str(e)}
    return {"mac": bulb.mac_address, "color": color.to_dict()}


@mcp.tool()
def echo(mac: str, text: str) -> dict[str, Any]:
    """Check that a bulb is reachable by echoing a short text.

    Args:
        mac: Bulb MAC address.
        text: Up to 64 bytes of text to echo.
    """
    try:
        reply = _get_bulb(mac).echo(text.encode("utf-8"))
    except (LookupError, LifxError, ValueError) as e:
        return {"error": str(e)}
    return {"echo": reply.decode("utf-8", errors="replace")}


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("lifx://bulbs/list")
def resource_bulbs_list() -> str:
    """Summary of the bulbs found by the last discovery."""
    bulbs = [
        {"mac": mac, "ip": bulb.ip_address, "label": bulb.label}
        for mac, bulb in sorted(_bulbs.items())
    ]
    return json.dumps({"bulbs": bulbs})


@mcp.resource("lifx://config")
def resource_config() -> str:
    """Network settings in use."""
    config = _get_client().config
    return json.dumps({
        "broadcast_address": config.broadcast_address,
        "port": config.port,
        "timeout": config.timeout,
    })


# ─── MCP PROMPTS ─────────────────────────────────────────────────────

@mcp.prompt()
def create_scene(mood: str) -> str:
    """Guide the AI to set up a lighting scene across the discovered bulbs.

    Args:
        mood: Desired atmosphere (e.g. "reading", "movie night", "sunrise").
    """
    return f"""Set up a "{mood}" lighting scene.
Consider:
- Warm whites (2700-3000 K, low saturation) for relaxed moods
- Cool whites (5000-6500 K) for focus and reading
- Saturated hues at low brightness for ambience
- Slow transitions (duration_ms 1000-5000) to avoid abrupt changes

Use discover_bulbs to find the bulbs, get_color to inspect them,
then set_power and set_color on each bulb."""


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    config = LanConfig.from_env()
    logging.basicConfig(level=getattr(logging, config.log_level, logging.INFO))
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
