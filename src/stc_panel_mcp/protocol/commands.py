"""Switch identifiers and the symbolic command table.

Each panel switch maps to a subsystem id carried in byte 2 of the frame;
byte 3 carries the on (0x01) / off (0x00) value. Commands are addressed by
keys such as ``"LIGHT 1"`` and resolve to 4-byte hex templates that are
padded to a full frame on send.
"""

from __future__ import annotations

from enum import IntEnum
from types import MappingProxyType

from ..errors import UnknownKeyError
from .framing import Frame, build_frame, parse_hex


class Switch(IntEnum):
    """Subsystem identifiers."""

    DOOR = 0x01
    LIGHT = 0x02
    EYE = 0x03
    ANTI = 0x04


# Key -> hex template (pre-pad)
COMMAND_HEX = MappingProxyType({
    "DOOR 1": "AA 55 01 01",
    "DOOR 0": "AA 55 01 00",
    "LIGHT 1": "AA 55 02 01",
    "LIGHT 0": "AA 55 02 00",
    "EYE 1": "AA 55 03 01",
    "EYE 0": "AA 55 03 00",
    "ANTI 1": "AA 55 04 01",
    "ANTI 0": "AA 55 04 00",
})


def parse_switch(name: str | Switch) -> Switch:
    """Resolve a switch by enum member or case-insensitive name."""
    if isinstance(name, Switch):
        return name
    try:
        return Switch[name.strip().upper()]
    except KeyError:
        raise ValueError(
            f"Unknown switch '{name}'. Valid: {[s.name.lower() for s in Switch]}"
        ) from None


def command_key(switch: Switch, on: bool) -> str:
    """Return the table key for turning ``switch`` on or off."""
    return f"{switch.name} {1 if on else 0}"


def lookup_template(key: str) -> str:
    """Return the hex template for ``key``.

    Raises:
        UnknownKeyError: The key is not in :data:`COMMAND_HEX`.
    """
    try:
        return COMMAND_HEX[key]
    except KeyError:
        raise UnknownKeyError(key) from None


def build_command(key: str) -> Frame:
    """Build the frame for a symbolic command key."""
    return build_frame(parse_hex(lookup_template(key)))
