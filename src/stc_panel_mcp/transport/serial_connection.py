"""Serial connection to the STC controller board.

Built on pyserial. The port is opened read-write, non-blocking and without
becoming the controlling terminal, in raw 8N1 mode with every form of flow
control disabled. Reads use a 100 ms poll so the background reader stays
responsive.

Received bytes are delivered by a :class:`serial.threaded.ReaderThread`
(the read reactor); writes are blocking and run on the caller's thread.
"""

from __future__ import annotations

import functools
import logging
import threading
import weakref
from typing import Callable, Optional

import serial
import serial.threaded

from ..errors import PortError

logger = logging.getLogger(__name__)

SUPPORTED_BAUD_RATES = (9600, 19200, 38400, 57600, 115200, 230400)
DEFAULT_BAUD = 115200
READ_POLL_S = 0.1

BytesListener = Callable[[bytes], None]
StateListener = Callable[[bool, Optional[BaseException]], None]


def resolve_baud(baud: int) -> int:
    """Return ``baud`` if supported, else :data:`DEFAULT_BAUD`."""
    if baud in SUPPORTED_BAUD_RATES:
        return baud
    logger.warning(
        "Unsupported baud rate %s, falling back to %d", baud, DEFAULT_BAUD
    )
    return DEFAULT_BAUD


class _ReactorProtocol(serial.threaded.Protocol):
    """Relays reactor events to the owning connection.

    Holds only a weak reference so a running reader cannot keep a
    discarded connection alive.
    """

    def __init__(self, owner: weakref.ref[SerialConnection]) -> None:
        self._owner = owner
        self.transport: serial.threaded.ReaderThread | None = None

    def connection_made(self, transport: serial.threaded.ReaderThread) -> None:
        self.transport = transport

    def data_received(self, data: bytes) -> None:
        owner = self._owner()
        if owner is not None:
            owner._dispatch_bytes(data)

    def connection_lost(self, exc: BaseException | None) -> None:
        owner = self._owner()
        if owner is not None:
            owner._reactor_stopped(self.transport, exc)
        self.transport = None


class SerialConnection:
    """Owns the serial port handle and its read reactor.

    Usage::

        conn = SerialConnection(on_bytes=print)
        conn.open("/dev/ttyUSB0", 115200)
        conn.write(bytes(frame))
        conn.close()

    ``open``, ``close`` and ``write`` share one lock guarding the open
    state. A write in progress delays a concurrent close until it
    finishes; a write after close raises :class:`PortError`.
    """

    def __init__(
        self,
        on_bytes: BytesListener | None = None,
        on_state_change: StateListener | None = None,
    ) -> None:
        self.on_bytes = on_bytes
        self.on_state_change = on_state_change
        self._lock = threading.Lock()
        # Serialises state notifications so a late "open" never follows "lost"
        self._notify_lock = threading.RLock()
        self._reader: serial.threaded.ReaderThread | None = None
        self._path = ""
        self._baudrate = DEFAULT_BAUD

    def __enter__(self) -> SerialConnection:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._reader is not None

    @property
    def path(self) -> str:
        return self._path

    @property
    def baudrate(self) -> int:
        return self._baudrate

    def open(self, path: str, baud: int = DEFAULT_BAUD) -> None:
        """Open and configure the port, then start the read reactor.

        Does nothing if the port is already open. Unsupported baud rates
        fall back to 115200.

        Raises:
            PortError: The device could not be opened or configured. The
                handle is closed before the error is raised.
        """
        with self._lock:
            if self._reader is not None:
                return

            baudrate = resolve_baud(baud)
            handle = None
            try:
                handle = serial.serial_for_url(
                    path,
                    do_not_open=True,
                    baudrate=baudrate,
                    bytesize=serial.EIGHTBITS,
                    parity=serial.PARITY_NONE,
                    stopbits=serial.STOPBITS_ONE,
                    xonxoff=False,
                    rtscts=False,
                    dsrdtr=False,
                    timeout=READ_POLL_S,
                    inter_byte_timeout=READ_POLL_S,
                )
                handle.open()
                # Drop anything queued before we took the line
                handle.reset_input_buffer()
                handle.reset_output_buffer()
            except (serial.SerialException, OSError, ValueError) as e:
                if handle is not None:
                    handle.close()
                reason = getattr(e, "strerror", None) or str(e)
                raise PortError(
                    f"cannot open serial port {path}: {reason}",
                    getattr(e, "errno", None),
                ) from e

            reader = serial.threaded.ReaderThread(
                handle,
                functools.partial(_ReactorProtocol, weakref.ref(self)),
            )
            reader.name = f"serial-reader-{path}"
            self._reader = reader
            self._path = path
            self._baudrate = baudrate
            reader.start()
            try:
                reader.connect()
            except RuntimeError as e:
                self._reader = None
                handle.close()
                raise PortError(f"reader for {path} stopped during start: {e}") from e

        with self._notify_lock:
            with self._lock:
                if self._reader is not reader:
                    # Closed or lost before the open could be reported
                    return
            logger.info("Connected to %s @ %d", path, baudrate)
            self._notify_state(True, None)

    def close(self) -> None:
        """Stop the read reactor and close the handle. Idempotent."""
        with self._lock:
            reader = self._reader
            if reader is None:
                return
            self._reader = None

        if reader is threading.current_thread():
            # Called from a listener on the reactor itself; it cannot join
            # its own thread, so close the handle and let the loop exit.
            reader.alive = False
            reader.serial.close()
        else:
            try:
                reader.close()
            except (serial.SerialException, OSError) as e:
                logger.warning("Error closing %s: %s", self._path, e)

        logger.info("Disconnected from %s", self._path)
        with self._notify_lock:
            self._notify_state(False, None)

    def write(self, data: bytes) -> int:
        """Write ``data`` in a single blocking call.

        Returns:
            Number of bytes written.

        Raises:
            PortError: The port is not open or the write failed.
        """
        with self._lock:
            if self._reader is None:
                raise PortError("serial port not connected")
            try:
                written = self._reader.write(bytes(data))
            except (serial.SerialException, OSError) as e:
                reason = getattr(e, "strerror", None) or str(e)
                raise PortError(
                    f"serial write failed: {reason}", getattr(e, "errno", None)
                ) from e

        logger.debug("Wrote %d byte(s) to %s", len(data), self._path)
        return written if written is not None else len(data)

    # ─── Reactor callbacks (run on the reader thread) ──────────────────

    def _dispatch_bytes(self, data: bytes) -> None:
        listener = self.on_bytes
        if listener is None:
            return
        try:
            listener(data)
        except Exception:
            # A listener bug must not stop the reader loop
            logger.exception("Byte listener failed on %d byte(s)", len(data))

    def _reactor_stopped(
        self,
        reader: serial.threaded.ReaderThread | None,
        exc: BaseException | None,
    ) -> None:
        with self._lock:
            if reader is None or self._reader is not reader:
                # Deliberate close; close() already handled the teardown
                return
            self._reader = None

        logger.warning("Lost connection to %s: %s", self._path, exc)
        reader.serial.close()
        with self._notify_lock:
            self._notify_state(False, exc)

    def _notify_state(self, is_open: bool, exc: BaseException | None) -> None:
        listener = self.on_state_change
        if listener is not None:
            listener(is_open, exc)
