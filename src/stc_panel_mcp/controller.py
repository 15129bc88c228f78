"""Panel controller: command dispatch, receive handling and connection state.

The controller is the boundary a presentation layer talks to. It turns
command keys and raw hex into frames on the wire, turns received bytes into
frames via :class:`FrameReassembler`, and reports everything through a log
book and optional event callbacks. Protocol and port errors are caught here
and reported; they never end the session.

Usage::

    with Controller(events=ControllerEvents(on_frame=show)) as panel:
        panel.connect("/dev/ttyUSB0", 115200)
        panel.send_cmd("LIGHT 1")
        panel.set_switch(Switch.DOOR, True)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .config import PanelConfig
from .errors import PortError, StcPanelError
from .models.log import ERR, RX_FRAME, RX_HEX, SYS, TX_HEX, LogBook, LogEntry, SendResult
from .models.switches import SwitchPanel
from .protocol.commands import Switch, command_key, lookup_template
from .protocol.framing import Frame, build_frame, bytes_to_hex, parse_hex
from .protocol.reassembly import FrameReassembler
from .transport.ports import NO_PORT, list_ports
from .transport.serial_connection import SerialConnection, resolve_baud

logger = logging.getLogger(__name__)

RAW_SOURCE = "HEX"
STATUS_DISCONNECTED = "disconnected"


@dataclass
class ControllerEvents:
    """Optional callbacks for a presentation layer.

    ``on_raw`` and ``on_frame`` run on the serial reader thread; the others
    run on whichever thread triggered them.
    """

    on_raw: Optional[Callable[[str, datetime], None]] = None
    on_frame: Optional[Callable[[Frame, datetime], None]] = None
    on_send: Optional[Callable[[SendResult], None]] = None
    on_state_change: Optional[Callable[[bool, str], None]] = None
    on_log: Optional[Callable[[LogEntry], None]] = None


class Controller:
    """Orchestrates the codec, reassembler and serial connection."""

    def __init__(
        self,
        config: PanelConfig | None = None,
        events: ControllerEvents | None = None,
        connection: SerialConnection | None = None,
    ) -> None:
        self.config = config or PanelConfig()
        self.events = events or ControllerEvents()
        self.log = LogBook(self.config.log_capacity)
        self.switches = SwitchPanel()
        self.reassembler = FrameReassembler(self.config.max_buffer)

        self.ports: list[str] = self._scan_ports()
        self.selected_port = self.config.port
        self.baud = self.config.baud
        self.status = STATUS_DISCONNECTED
        self._rx_chunks = 0

        self._conn = connection or SerialConnection()
        self._conn.on_bytes = self.on_bytes_received
        self._conn.on_state_change = self._on_port_state

    def __enter__(self) -> Controller:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()

    @property
    def is_open(self) -> bool:
        return self._conn.is_open

    # ─── Ports & connection ─────────────────────────────────────────────

    def _scan_ports(self) -> list[str]:
        return list_ports(self.config.device_dir, self.config.port_prefixes)

    def refresh_ports(self) -> list[str]:
        """Re-enumerate devices; forget the selection if it disappeared."""
        self.ports = self._scan_ports()
        if self.selected_port not in self.ports:
            self.selected_port = NO_PORT
        return self.ports

    def connect(self, port: str | None = None, baud: int | None = None) -> bool:
        """Open the selected (or given) port.

        While a port is open this only succeeds for the port and baud in
        use; anything else is logged and leaves the connection untouched.

        Returns:
            True if the requested port is open afterwards. Failures are logged.
        """
        if self._conn.is_open:
            return self._check_open_matches(port, baud)
        if port is not None:
            self.selected_port = port
        if baud is not None:
            self.baud = resolve_baud(baud)

        try:
            if self.selected_port == NO_PORT:
                raise PortError("no serial port selected")
            self._conn.open(self.selected_port, self.baud)
        except PortError as e:
            logger.warning("Open failed: %s", e)
            self._append_log(ERR, f"open failed: {e}")
            return False
        return True

    def _check_open_matches(self, port: str | None, baud: int | None) -> bool:
        """Already open: accept only a request for the port and baud in use."""
        wanted_port = self._conn.path if port is None else port
        wanted_baud = self._conn.baudrate if baud is None else resolve_baud(baud)
        if (wanted_port, wanted_baud) == (self._conn.path, self._conn.baudrate):
            return True
        self._append_log(
            ERR,
            f"already connected to {self._conn.path} @ {self._conn.baudrate}; "
            f"disconnect before opening {wanted_port} @ {wanted_baud}",
        )
        return False

    def disconnect(self) -> None:
        self._conn.close()

    def toggle_connection(self) -> bool:
        """Disconnect if open, connect otherwise. Returns the new open state."""
        if self._conn.is_open:
            self.disconnect()
            return False
        return self.connect()

    def _on_port_state(self, is_open: bool, exc: BaseException | None) -> None:
        if is_open:
            self.status = f"connected {self._conn.path} @ {self._conn.baudrate}"
            self._append_log(SYS, f"connected: {self._conn.path} @ {self._conn.baudrate}")
        else:
            self.status = STATUS_DISCONNECTED
            if exc is not None:
                self._append_log(ERR, f"connection lost: {exc}")
            else:
                self._append_log(SYS, "serial port closed")
        if self.events.on_state_change:
            self._emit(self.events.on_state_change, is_open, self.status)

    # ─── Sending ────────────────────────────────────────────────────────

    def send_cmd(self, key: str) -> SendResult:
        """Send the frame mapped to a command key, e.g. ``"LIGHT 1"``."""
        try:
            template = lookup_template(key)
        except StcPanelError as e:
            return self._send_failed(key, e)
        return self._send_hex(template, key)

    def send_raw(self, hex_string: str) -> SendResult:
        """Send caller-supplied hex, padded or truncated to one frame."""
        return self._send_hex(hex_string, RAW_SOURCE)

    def set_switch(self, switch: Switch, on: bool) -> SendResult:
        """Turn a switch on or off; state only changes if the send succeeds."""
        result = self.send_cmd(command_key(switch, on))
        if result.ok:
            self.switches.set(switch, on)
        return result

    def _send_hex(self, hex_string: str, source: str) -> SendResult:
        try:
            frame = build_frame(parse_hex(hex_string))
            self._conn.write(bytes(frame))
        except StcPanelError as e:
            return self._send_failed(source, e)

        label = "manual hex" if source == RAW_SOURCE else source
        self._append_log(TX_HEX, f"{frame.hex()}  ({label})")
        result = SendResult(ok=True, source=source, frame=frame)
        if self.events.on_send:
            self._emit(self.events.on_send, result)
        return result

    def _send_failed(self, source: str, error: StcPanelError) -> SendResult:
        logger.info("Send from %s failed: %s", source, error)
        self._append_log(ERR, f"send failed: {error}")
        result = SendResult(ok=False, source=source, error=error)
        if self.events.on_send:
            self._emit(self.events.on_send, result)
        return result

    # ─── Receiving (reader thread) ──────────────────────────────────────

    def on_bytes_received(self, chunk: bytes) -> None:
        """Log a received chunk and surface every frame it completes."""
        now = datetime.now()
        hex_chunk = bytes_to_hex(chunk)
        self._rx_chunks += 1
        every = self.config.log_every_n_rx
        if every <= 0:
            self._append_log(RX_HEX, hex_chunk)
        elif self._rx_chunks % every == 0:
            self._append_log(RX_HEX, f"{hex_chunk}  (logged every {every} chunks)")
        if self.events.on_raw:
            self._emit(self.events.on_raw, hex_chunk, now)

        for frame in self.reassembler.feed(chunk):
            self._append_log(RX_FRAME, frame.hex())
            if self.events.on_frame:
                self._emit(self.events.on_frame, frame, now)

    def frames(self, limit: int | None = None) -> list[LogEntry]:
        """Recently received frames, oldest first."""
        return self.log.tail(limit, tag=RX_FRAME)

    # ─── Helpers ────────────────────────────────────────────────────────

    def _emit(self, callback: Callable, *args) -> None:
        try:
            callback(*args)
        except Exception:
            # Callback errors must not escape the controller or stop the reader
            logger.exception("Event callback %r failed", callback)

    def _append_log(self, tag: str, message: str) -> None:
        entry = self.log.append(tag, message)
        if self.events.on_log:
            self._emit(self.events.on_log, entry)
