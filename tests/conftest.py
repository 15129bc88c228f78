"""Shared fixtures: an in-memory stand-in for the serial connection."""

from __future__ import annotations

import pytest

from stc_panel_mcp.config import PanelConfig
from stc_panel_mcp.controller import Controller
from stc_panel_mcp.errors import PortError


class FakeConnection:
    """Mimics SerialConnection without a device or reader thread."""

    def __init__(self):
        self.on_bytes = None
        self.on_state_change = None
        self.written: list[bytes] = []
        self.is_open = False
        self.path = ""
        self.baudrate = 115200
        self.fail_open: PortError | None = None
        self.fail_write: PortError | None = None

    def open(self, path, baud=115200):
        if self.is_open:
            return
        if self.fail_open is not None:
            raise self.fail_open
        self.is_open = True
        self.path = path
        self.baudrate = baud
        if self.on_state_change:
            self.on_state_change(True, None)

    def close(self):
        if not self.is_open:
            return
        self.is_open = False
        if self.on_state_change:
            self.on_state_change(False, None)

    def write(self, data):
        if not self.is_open:
            raise PortError("serial port not connected")
        if self.fail_write is not None:
            raise self.fail_write
        self.written.append(bytes(data))
        return len(data)

    def feed(self, data: bytes):
        """Deliver bytes as if the reader thread had received them."""
        self.on_bytes(data)


@pytest.fixture
def fake_conn():
    return FakeConnection()


@pytest.fixture
def panel(fake_conn, tmp_path):
    """A controller wired to a fake connection, already connected."""
    config = PanelConfig(device_dir=str(tmp_path), port_prefixes=("ttyUSB",))
    controller = Controller(config, connection=fake_conn)
    assert controller.connect("/dev/ttyUSB0", 115200)
    return controller
