"""MCP server entry point for the STC serial control panel.

Exposes the panel controller as tools and resources via the Model Context
Protocol using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .config import PanelConfig
from .controller import Controller
from .models.log import ERR
from .protocol.commands import COMMAND_HEX, Switch, parse_switch
from .transport.serial_connection import SUPPORTED_BAUD_RATES

logger = logging.getLogger(__name__)

mcp = FastMCP("stc-panel")

# Global panel state
_controller: Controller | None = None


def _get_controller() -> Controller:
    """Get the panel controller, creating it from the environment on first use."""
    global _controller
    if _controller is None:
        _controller = Controller(PanelConfig.from_env())
    return _controller


def _status(panel: Controller) -> dict[str, Any]:
    return {
        "connected": panel.is_open,
        "status": panel.status,
        "port": panel.selected_port,
        "baud": panel.baud,
        "switches": panel.switches.to_dict(),
    }


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def list_ports() -> dict[str, Any]:
    """Rescan the device directory for serial ports.

    The first entry is always "None", meaning no port selected.
    """
    panel = _get_controller()
    return {
        "ports": panel.refresh_ports(),
        "selected": panel.selected_port,
        "baud_rates": list(SUPPORTED_BAUD_RATES),
    }


@mcp.tool()
def connect(port: str | None = None, baud: int | None = None) -> dict[str, Any]:
    """Open the serial link to the controller board.

    Args:
        port: Device path, e.g. /dev/ttyUSB0. Defaults to the selected port.
        baud: One of 9600, 19200, 38400, 57600, 115200, 230400.
              Other values fall back to 115200.
    """
    panel = _get_controller()
    if not panel.connect(port, baud):
        errors = panel.log.tail(1, tag=ERR)
        return {"connected": False, "error": errors[-1].message if errors else "open failed"}
    return _status(panel)


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the serial link."""
    _get_controller().disconnect()
    return {"disconnected": True}


@mcp.tool()
def get_status() -> dict[str, Any]:
    """Connection state, selected port and baud, and switch states."""
    return _status(_get_controller())


# ─── COMMAND TOOLS ────────────────────────────────────────────────────

@mcp.tool()
def list_commands() -> dict[str, Any]:
    """List the command keys and the hex each one sends (before padding)."""
    return {"commands": dict(COMMAND_HEX)}


@mcp.tool()
def send_command(key: str) -> dict[str, Any]:
    """Send a mapped command by key.

    Args:
        key: Command key such as "LIGHT 1" or "DOOR 0".
    """
    return _get_controller().send_cmd(key).to_dict()


@mcp.tool()
def send_hex(hex_string: str) -> dict[str, Any]:
    """Send a raw frame given as hex.

    The bytes must start with AA 55; they are zero-padded or truncated to
    6 bytes.

    Args:
        hex_string: e.g. "AA 55 02 01", "AA5502010000" or "0xAA,0x55,0x02".
    """
    return _get_controller().send_raw(hex_string).to_dict()


@mcp.tool()
def set_switch(switch: str, on: bool) -> dict[str, Any]:
    """Turn a panel switch on or off.

    Args:
        switch: One of door, light, eye, anti.
        on: True to switch on, False to switch off.
    """
    try:
        target = parse_switch(switch)
    except ValueError as e:
        return {"error": str(e)}

    panel = _get_controller()
    result = panel.set_switch(target, on).to_dict()
    result["switches"] = panel.switches.to_dict()
    return result


# ─── LOG TOOLS ────────────────────────────────────────────────────────

@mcp.tool()
def get_log(limit: int = 50) -> dict[str, Any]:
    """Return the newest panel log lines, oldest first.

    Args:
        limit: Maximum number of lines (default 50).
    """
    return {"lines": _get_controller().log.lines(limit)}


@mcp.tool()
def clear_log() -> dict[str, bool]:
    """Discard every panel log line, received frames included."""
    _get_controller().log.clear()
    return {"cleared": True}


@mcp.tool()
def get_frames(limit: int = 20) -> dict[str, Any]:
    """Return recently received frames, oldest first.

    Args:
        limit: Maximum number of frames (default 20).
    """
    entries = _get_controller().frames(limit)
    return {"frames": [e.to_dict() for e in entries]}


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("stc://device/status")
def resource_device_status() -> str:
    """Connection state and switch states."""
    if _controller is None:
        return json.dumps({"connected": False})
    return json.dumps(_status(_controller))


@mcp.resource("stc://commands/table")
def resource_command_table() -> str:
    """Command keys, their hex templates and the switch ids."""
    return json.dumps({
        "commands": dict(COMMAND_HEX),
        "switches": {s.name.lower(): int(s) for s in Switch},
    })


@mcp.resource("stc://log/recent")
def resource_recent_log() -> str:
    """The newest 100 panel log lines."""
    if _controller is None:
        return json.dumps({"lines": []})
    return json.dumps({"lines": _controller.log.lines(100)})


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    config = PanelConfig.from_env()
    logging.basicConfig(level=getattr(logging, config.log_level, logging.INFO))
    global _controller
    _controller = Controller(config)
    try:
        mcp.run(transport="stdio")
    finally:
        _controller.disconnect()


if __name__ == "__main__":
    main()
