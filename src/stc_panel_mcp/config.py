"""Runtime configuration for the serial control panel.

Defaults suit a single STC board on a USB serial adapter. Every field can
be overridden through ``STC_PANEL_*`` environment variables, which is how
the MCP server is configured when launched by a client.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping

from .models.log import DEFAULT_LOG_CAPACITY
from .protocol.framing import FRAME_LEN
from .protocol.reassembly import DEFAULT_MAX_BUFFER
from .transport.ports import DEFAULT_PORT_PREFIXES, DEVICE_DIR, NO_PORT
from .transport.serial_connection import DEFAULT_BAUD

logger = logging.getLogger(__name__)

ENV_PREFIX = "STC_PANEL_"


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring %s%s=%r: not an integer", ENV_PREFIX, name, raw)
        return default


@dataclass
class PanelConfig:
    """Controller settings."""

    port: str = NO_PORT
    baud: int = DEFAULT_BAUD
    device_dir: str = DEVICE_DIR
    port_prefixes: tuple[str, ...] = DEFAULT_PORT_PREFIXES
    log_every_n_rx: int = 0  # 0 logs every received chunk
    log_capacity: int = DEFAULT_LOG_CAPACITY
    max_buffer: int = DEFAULT_MAX_BUFFER
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.port_prefixes = tuple(p for p in self.port_prefixes if p)
        self.log_every_n_rx = max(int(self.log_every_n_rx), 0)
        self.log_capacity = max(int(self.log_capacity), 1)
        self.max_buffer = max(int(self.max_buffer), FRAME_LEN)
        self.log_level = self.log_level.upper()

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> PanelConfig:
        """Build a config from ``STC_PANEL_*`` variables over the defaults."""
        if environ is None:
            environ = os.environ
        defaults = cls()

        prefixes = defaults.port_prefixes
        raw_prefixes = environ.get(ENV_PREFIX + "PORT_PREFIXES")
        if raw_prefixes:
            prefixes = tuple(p.strip() for p in raw_prefixes.split(",") if p.strip())

        return cls(
            port=environ.get(ENV_PREFIX + "PORT", defaults.port),
            baud=_env_int(environ, "BAUD", defaults.baud),
            device_dir=environ.get(ENV_PREFIX + "DEVICE_DIR", defaults.device_dir),
            port_prefixes=prefixes,
            log_every_n_rx=_env_int(environ, "LOG_EVERY_N_RX", defaults.log_every_n_rx),
            log_capacity=_env_int(environ, "LOG_CAPACITY", defaults.log_capacity),
            max_buffer=_env_int(environ, "MAX_BUFFER", defaults.max_buffer),
            log_level=environ.get(ENV_PREFIX + "LOG_LEVEL", defaults.log_level),
        )
