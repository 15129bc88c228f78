"""Tests for the switch ids and command table."""

import pytest

from stc_panel_mcp.errors import CommandError, UnknownKeyError
from stc_panel_mcp.protocol.commands import (
    COMMAND_HEX,
    Switch,
    build_command,
    command_key,
    lookup_template,
    parse_switch,
)
from stc_panel_mcp.protocol.framing import FRAME_HEAD, build_frame, parse_hex


def test_switch_enum_values():
    """Subsystem ids match the board firmware."""
    assert Switch.DOOR == 0x01
    assert Switch.LIGHT == 0x02
    assert Switch.EYE == 0x03
    assert Switch.ANTI == 0x04


def test_table_contents():
    assert COMMAND_HEX["DOOR 1"] == "AA 55 01 01"
    assert COMMAND_HEX["DOOR 0"] == "AA 55 01 00"
    assert COMMAND_HEX["LIGHT 1"] == "AA 55 02 01"
    assert COMMAND_HEX["LIGHT 0"] == "AA 55 02 00"
    assert COMMAND_HEX["EYE 1"] == "AA 55 03 01"
    assert COMMAND_HEX["EYE 0"] == "AA 55 03 00"
    assert COMMAND_HEX["ANTI 1"] == "AA 55 04 01"
    assert COMMAND_HEX["ANTI 0"] == "AA 55 04 00"
    assert len(COMMAND_HEX) == 8


def test_table_is_read_only():
    with pytest.raises(TypeError):
        COMMAND_HEX["NEW 1"] = "AA 55 09 01"


def test_command_key():
    assert command_key(Switch.LIGHT, True) == "LIGHT 1"
    assert command_key(Switch.ANTI, False) == "ANTI 0"


def test_every_key_has_both_states():
    for switch in Switch:
        assert command_key(switch, True) in COMMAND_HEX
        assert command_key(switch, False) in COMMAND_HEX


def test_build_command_light_on():
    frame = build_command("LIGHT 1")
    assert bytes(frame) == bytes([0xAA, 0x55, 0x02, 0x01, 0x00, 0x00])


def test_templates_build_deterministically():
    """Every entry builds the same header-aligned frame each time."""
    for key, template in COMMAND_HEX.items():
        first = build_frame(parse_hex(template))
        second = build_frame(parse_hex(template))
        assert first == second == build_command(key)
        assert bytes(first)[:2] == FRAME_HEAD
        switch_name, value = key.split()
        assert first.payload[0] == Switch[switch_name]
        assert first.payload[1] == int(value)


def test_unknown_key():
    with pytest.raises(UnknownKeyError) as exc_info:
        lookup_template("NOPE")
    assert exc_info.value.key == "NOPE"
    assert "NOPE" in str(exc_info.value)
    with pytest.raises(CommandError):
        build_command("light 1")


def test_parse_switch():
    assert parse_switch("door") is Switch.DOOR
    assert parse_switch(" Light ") is Switch.LIGHT
    assert parse_switch(Switch.EYE) is Switch.EYE
    with pytest.raises(ValueError):
        parse_switch("window")
