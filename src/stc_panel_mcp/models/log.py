"""Operator-facing log lines and send results.

The log book is what a panel shows the operator: timestamped, tagged
lines such as ``[12:00:01] [TX HEX] AA 55 02 01 00 00  (LIGHT 1)``. It is
separate from Python logging, which carries diagnostics.
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime

from ..protocol.framing import Frame

DEFAULT_LOG_CAPACITY = 2000

# Log tags
SYS = "SYS"
ERR = "ERR"
TX_HEX = "TX HEX"
RX_HEX = "RX HEX"
RX_FRAME = "RX FRAME"


@dataclass(frozen=True)
class LogEntry:
    """One tagged log line."""

    tag: str
    message: str
    timestamp: datetime = field(default_factory=datetime.now)

    def render(self) -> str:
        return f"[{self.timestamp:%H:%M:%S}] [{self.tag}] {self.message}"

    def to_dict(self) -> dict:
        return {
            "time": self.timestamp.isoformat(timespec="seconds"),
            "tag": self.tag,
            "message": self.message,
        }


class LogBook:
    """Bounded, thread-safe log; the oldest lines drop first."""

    def __init__(self, capacity: int = DEFAULT_LOG_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"Log capacity must be positive, got {capacity}")
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def append(self, tag: str, message: str) -> LogEntry:
        entry = LogEntry(tag=tag, message=message)
        with self._lock:
            self._entries.append(entry)
        return entry

    def tail(self, limit: int | None = None, tag: str | None = None) -> list[LogEntry]:
        """Return the newest ``limit`` entries (all if ``None``), oldest first."""
        with self._lock:
            entries = list(self._entries)
        if tag is not None:
            entries = [e for e in entries if e.tag == tag]
        if limit is not None:
            entries = entries[-limit:] if limit > 0 else []
        return entries

    def lines(self, limit: int | None = None) -> list[str]:
        return [e.render() for e in self.tail(limit)]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class SendResult:
    """Outcome of one send, by command key or raw hex."""

    ok: bool
    source: str
    frame: Frame | None = None
    error: Exception | None = None

    def to_dict(self) -> dict:
        result: dict = {"sent": self.ok, "source": self.source}
        if self.frame is not None:
            result["frame"] = self.frame.hex()
        if self.error is not None:
            result["error"] = str(self.error)
        return result
