"""Host-side control of an STC microcontroller over a 6-byte framed serial protocol."""

from .errors import (
    CommandError,
    FrameError,
    HexParseError,
    PortError,
    StcPanelError,
)
from .controller import Controller, ControllerEvents
from .config import PanelConfig

__version__ = "0.1.0"
