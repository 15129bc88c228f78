"""Serial device discovery by scanning the device directory."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)

NO_PORT = "None"
DEVICE_DIR = "/dev"

if sys.platform == "darwin":
    # Call-unit and terminal device nodes
    DEFAULT_PORT_PREFIXES: tuple[str, ...] = ("cu.", "tty.")
else:
    DEFAULT_PORT_PREFIXES = ("ttyUSB", "ttyACM")


def list_ports(
    device_dir: str | Path = DEVICE_DIR,
    prefixes: Iterable[str] = DEFAULT_PORT_PREFIXES,
) -> list[str]:
    """List candidate serial device paths.

    The result always starts with the :data:`NO_PORT` sentinel, followed by
    the matching device paths in lexicographic order. An unreadable
    directory yields the sentinel alone.
    """
    prefixes = tuple(prefixes)
    try:
        names = [entry.name for entry in Path(device_dir).iterdir()]
    except OSError as e:
        logger.debug("Cannot scan %s: %s", device_dir, e)
        return [NO_PORT]

    paths = sorted(
        str(Path(device_dir) / name)
        for name in names
        if name.startswith(prefixes)
    )
    return [NO_PORT] + paths
