"""Exception taxonomy for the serial control panel.

Every error raised by the protocol and transport layers derives from
:class:`StcPanelError`, so a caller can catch the whole family at one
boundary. Each concrete class also derives from the closest builtin
(``ConnectionError``, ``ValueError``, ``LookupError``) so generic handlers
keep working.
"""

from __future__ import annotations


class StcPanelError(Exception):
    """Base class for all panel errors."""


class PortError(StcPanelError, ConnectionError):
    """Opening, configuring or writing the serial port failed.

    Carries the OS error number (``None`` when the failure did not come from
    the OS) and a readable message.
    """

    def __init__(self, message: str, errno: int | None = None) -> None:
        super().__init__(message)
        self.errno = errno
        self.message = message

    def __str__(self) -> str:
        if self.errno is not None:
            return f"{self.message} (errno {self.errno})"
        return self.message


class HexParseError(StcPanelError, ValueError):
    """A hex string could not be decoded."""


class OddLengthError(HexParseError):
    def __init__(self) -> None:
        super().__init__("hex string must have an even number of digits")


class IllegalByteError(HexParseError):
    def __init__(self, token: str) -> None:
        super().__init__(f"illegal hex byte: {token}")
        self.token = token


class FrameError(StcPanelError, ValueError):
    """Bytes do not form a valid protocol frame."""


class MissingHeaderError(FrameError):
    def __init__(self) -> None:
        super().__init__("frame must start with AA 55 (6-byte protocol)")


class CommandError(StcPanelError, LookupError):
    """A symbolic command could not be resolved."""


class UnknownKeyError(CommandError):
    def __init__(self, key: str) -> None:
        super().__init__(f"no command mapped to key: {key}")
        self.key = key
