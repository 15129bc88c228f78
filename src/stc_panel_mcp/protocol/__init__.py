"""Protocol layer: hex codec, frame builder, stream reassembly and command table."""

from .framing import Frame, build_frame, bytes_to_hex, parse_hex
from .reassembly import FrameReassembler
from .commands import COMMAND_HEX, Switch, build_command, command_key
