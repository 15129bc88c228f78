"""Transport layer: serial device discovery and the serial connection."""

from .ports import NO_PORT, list_ports
from .serial_connection import (
    DEFAULT_BAUD,
    SUPPORTED_BAUD_RATES,
    SerialConnection,
)
