"""Frame builder and hex codec for the 6-byte STC serial protocol.

Frame layout::

    +----------+----------+--------+--------+--------+--------+
    | Header   | Header   | Byte 2 | Byte 3 | Byte 4 | Byte 5 |
    | 0xAA     | 0x55     |              payload              |
    +----------+----------+--------+--------+--------+--------+

- Header: 0xAA 0x55
- Payload: 4 bytes; shorter sources are zero-padded, longer ones truncated
- Command frames use byte 2 as the subsystem id and byte 3 as the value
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..errors import (
    FrameError,
    IllegalByteError,
    MissingHeaderError,
    OddLengthError,
)

FRAME_HEAD = b"\xAA\x55"
FRAME_LEN = 6

_TOKEN_BYTE = re.compile(r"^[0-9a-fA-F]{1,2}$")
_HEX_PAIR = re.compile(r"^[0-9a-fA-F]{2}$")


def bytes_to_hex(data: bytes) -> str:
    """Format bytes as upper-case, space-separated hex (``"AA 55 01"``)."""
    return " ".join(f"{b:02X}" for b in data)


@dataclass(frozen=True)
class Frame:
    """A complete, header-aligned protocol frame."""

    data: bytes

    def __post_init__(self) -> None:
        if len(self.data) != FRAME_LEN:
            raise FrameError(f"frame must be {FRAME_LEN} bytes, got {len(self.data)}")
        if self.data[:2] != FRAME_HEAD:
            raise MissingHeaderError()

    @property
    def payload(self) -> bytes:
        return self.data[2:]

    def hex(self) -> str:
        return bytes_to_hex(self.data)

    def __bytes__(self) -> bytes:
        return self.data

    def __len__(self) -> int:
        return FRAME_LEN

    def __repr__(self) -> str:
        return f"Frame({self.hex()})"


def parse_hex(text: str) -> bytes:
    """Decode a user-supplied hex string.

    Two spellings are accepted:

    - one contiguous run of digits, e.g. ``"AA5501"`` or ``"0xAA5501"``,
      which must hold an even number of digits;
    - several tokens separated by whitespace or commas, e.g.
      ``"AA 55, 0x01 2"``, each token one or two hex digits.

    Empty or whitespace-only input decodes to ``b""``.

    Raises:
        OddLengthError: A single contiguous run has an odd digit count.
        IllegalByteError: A byte or token is not valid hex.
    """
    tokens = text.replace(",", " ").split()
    if not tokens:
        return b""

    if len(tokens) == 1:
        digits = tokens[0].replace("0x", "")
        if len(digits) % 2 != 0:
            raise OddLengthError()
        out = bytearray()
        for i in range(0, len(digits), 2):
            pair = digits[i : i + 2]
            if not _HEX_PAIR.match(pair):
                raise IllegalByteError(pair)
            out.append(int(pair, 16))
        return bytes(out)

    out = bytearray()
    for token in tokens:
        digits = token[2:] if token.startswith("0x") else token
        if not _TOKEN_BYTE.match(digits):
            raise IllegalByteError(token)
        out.append(int(digits, 16))
    return bytes(out)


def build_frame(raw: bytes) -> Frame:
    """Normalize raw bytes into a 6-byte frame.

    Args:
        raw: Bytes starting with the ``AA 55`` header.

    Returns:
        A :class:`Frame`, zero-padded or truncated to 6 bytes.

    Raises:
        MissingHeaderError: ``raw`` is shorter than 2 bytes or does not
            start with the header.
    """
    raw = bytes(raw)
    if len(raw) < 2 or raw[:2] != FRAME_HEAD:
        raise MissingHeaderError()
    return Frame(raw[:FRAME_LEN].ljust(FRAME_LEN, b"\x00"))
